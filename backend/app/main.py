"""Bate-papo Backend Application.

This is the main entry point for the bate-papo chat service: a single group
chat room where participants register, exchange public and private messages,
and are evicted after they stop sending status pings.

Modules:
    - participants: Registration, listing and liveness pings
    - messages: Sending, visibility-filtered listing, owner-only edit/delete
    - presence: Background reaper evicting inactive participants
    - store: DuckDB document store shared by all of the above
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from app.config import AppConfig, get_config
from app.errors import install_error_handlers
from app.messages.router import router as messages_router
from app.messages.service import MessageService
from app.participants.router import router as participants_router
from app.participants.service import ParticipantRegistry
from app.presence import PresenceReaper
from app.store import ChatDatabase

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence per-request access logs; chat clients poll every few seconds.
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config: AppConfig = app.state.config
    if config is None:
        config = get_config()

    # Honor logging.level from the settings file on the root logger.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    db = ChatDatabase(config.store.path)
    registry = ParticipantRegistry(db, name_match=config.presence.name_match)
    messages = MessageService(db, registry)
    reaper = PresenceReaper(db, registry, messages, config.presence)

    app.state.db = db
    app.state.registry = registry
    app.state.messages = messages
    app.state.reaper = reaper

    if config.presence.reaper_enabled:
        await reaper.start()
    else:
        logger.info("Inactivity reaper disabled in config.")

    yield  # Application runs here

    # Shutdown
    await reaper.stop()
    db.close()
    logger.info("Application shutdown complete")


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Settings to use. When omitted, settings are loaded from
            batepapo.settings.yaml at startup.
    """
    app = FastAPI(
        title="Bate-papo API",
        description="Group chat backend with presence tracking",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    install_error_handlers(app)
    app.include_router(participants_router)
    app.include_router(messages_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn using the configured host/port."""
    config = get_config()
    uvicorn.run("app.main:app", host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    run()
