"""Inactivity reaper: evicts participants that stopped sending status pings.

The reaper runs as a background asyncio task for the application lifetime.
Every sweep removes participants whose last ping is older than the idle
timeout and broadcasts one departure notice per evicted participant. The
eviction and its notices commit together or not at all.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from app.config import PresenceSettings
from app.messages.schemas import LEAVE_TEXT
from app.messages.service import MessageService
from app.participants.service import ParticipantRegistry
from app.store import ChatDatabase

logger = logging.getLogger(__name__)


class PresenceReaper:
    """Periodic sweep over the participant registry."""

    def __init__(
        self,
        db: ChatDatabase,
        registry: ParticipantRegistry,
        messages: MessageService,
        settings: Optional[PresenceSettings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = db
        self._registry = registry
        self._messages = messages
        self._settings = settings or PresenceSettings()
        self._clock = clock
        self._sweep_task: Optional[asyncio.Task] = None  # type: ignore[type-arg]

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start background sweep task."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "[reaper] Sweep task started (idle_timeout=%ss, interval=%ss)",
            self._settings.idle_timeout_seconds,
            self._settings.sweep_interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        logger.info("[reaper] Sweep task stopped")

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.sweep_interval_seconds)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("[reaper] Sweep failed; retrying next interval")

    def sweep_once(self) -> List[str]:
        """Evict stale participants and announce their departure.

        Returns:
            Names of the evicted participants.
        """
        threshold = int((self._clock() - self._settings.idle_timeout_seconds) * 1000)
        with self._db.transaction() as conn:
            departed = self._registry.remove_stale(threshold, conn=conn)
            if not departed:
                return departed
            self._messages.post_status(departed, LEAVE_TEXT, conn=conn)

        logger.info("[reaper] Evicted %d inactive participant(s): %s", len(departed), ", ".join(departed))
        return departed
