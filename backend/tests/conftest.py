"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig, PresenceSettings, StoreSettings
from app.main import create_app
from app.messages.service import MessageService
from app.participants.service import ParticipantRegistry
from app.presence import PresenceReaper
from app.store import ChatDatabase

# 2024-03-01 12:00:00 UTC
START_TIME = 1709294400.0


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    """In-memory chat database, closed after the test."""
    database = ChatDatabase(":memory:")
    yield database
    database.close()


@pytest.fixture
def registry(db, clock):
    return ParticipantRegistry(db, clock=clock)


@pytest.fixture
def messages(db, registry, clock):
    return MessageService(db, registry, clock=clock)


@pytest.fixture
def reaper(db, registry, messages, clock):
    return PresenceReaper(db, registry, messages, PresenceSettings(), clock=clock)


@pytest.fixture
def api_client():
    """Provide a TestClient for an app backed by an in-memory store.

    The reaper is disabled so that HTTP tests never race a sweep; the
    context manager runs the lifespan so services exist on ``app.state``.
    """
    config = AppConfig(
        store=StoreSettings(path=":memory:"),
        presence=PresenceSettings(reaper_enabled=False),
    )
    with TestClient(create_app(config)) as client:
        yield client
