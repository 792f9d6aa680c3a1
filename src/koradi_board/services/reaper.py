"""Background expiry sweeps for the message store.

This module provides the MessageReaper class, which periodically removes
expired messages from a MessageStore independently of request traffic.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime

from koradi_board.core.time import Clock, utcnow
from koradi_board.services.message_store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class ReaperStats:
    """Counters describing the sweeps performed so far."""

    sweeps: int = 0
    failed_sweeps: int = 0
    total_removed: int = 0
    last_removed: int = 0
    last_sweep_at: datetime | None = None


class MessageReaper:
    """Periodically sweeps expired messages out of the store.

    A failing sweep is logged and the loop carries on with the next tick;
    only ``stop()`` ends the loop.
    """

    def __init__(
        self,
        store: MessageStore,
        interval_seconds: float = 60.0,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize the reaper.

        Args:
            store: Message store to sweep.
            interval_seconds: Delay between sweeps.
            clock: Source of "now" handed to each sweep.

        Raises:
            ValueError: If ``interval_seconds`` is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.interval_seconds = float(interval_seconds)
        self.stats = ReaperStats()
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        """Return True while the background loop is active."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self.running:
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="message-reaper")
        logger.info("Message reaper started with interval %.1fs", self.interval_seconds)

    async def stop(self) -> None:
        """Signal the sweep loop to finish and wait for it."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Message reaper stopped")

    def sweep_once(self) -> int | None:
        """Run a single sweep and record its outcome.

        Returns:
            Number of removed messages, or None if the sweep failed.
        """
        now = self._clock()
        self.stats.sweeps += 1
        self.stats.last_sweep_at = now
        try:
            removed = self.store.sweep_expired(now)
        except Exception:
            self.stats.failed_sweeps += 1
            logger.exception("Expiry sweep failed; retrying on next tick")
            return None

        self.stats.last_removed = removed
        self.stats.total_removed += removed
        if removed:
            logger.info("Expiry sweep removed %d messages", removed)
        else:
            logger.debug("Expiry sweep removed nothing")
        return removed

    async def _run(self) -> None:
        while not self._stopping.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            if self._stopping.is_set():
                return
            self.sweep_once()
