from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Generic, Optional, TypeVar

from salesdesk.timeutil import utcnow

logger = logging.getLogger("salesdesk.services.polling")

T = TypeVar("T")


class PeriodicRefresher(Generic[T]):
    """
    Re-runs a blocking loader on a fixed interval and keeps the latest result.

    - The loader runs in a worker thread so the event loop stays free.
    - A failed refresh is logged and the previous snapshot is kept.
    - stop() cancels the task; nothing is published after that.
    """

    def __init__(self, name: str, loader: Callable[[], T], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.name = name
        self.interval_seconds = interval_seconds
        self._loader = loader
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

        self.snapshot: Optional[T] = None
        self.refreshed_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> Optional[T]:
        """Run the loader once; returns the snapshot in effect afterwards."""
        try:
            result = await asyncio.to_thread(self._loader)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.failures += 1
            self.last_error = str(exc)
            logger.exception(
                "Refresh '%s' failed; keeping previous snapshot (failures=%d)",
                self.name,
                self.failures,
            )
            return self.snapshot

        if self._stopped:
            logger.debug("Refresh '%s' finished after stop; result dropped", self.name)
            return self.snapshot

        self.snapshot = result
        self.refreshed_at = utcnow()
        self.last_error = None
        return self.snapshot

    async def _run(self) -> None:
        logger.info("Refresh loop '%s' started (every %ss)", self.name, self.interval_seconds)
        try:
            while not self._stopped:
                await self.refresh_once()
                await asyncio.sleep(self.interval_seconds)
        except asyncio.CancelledError:
            logger.info("Refresh loop '%s' cancelled", self.name)
            raise

    def start(self) -> None:
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"refresh:{self.name}")

    async def stop(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Refresh loop '%s' stopped", self.name)

    def status(self) -> dict:
        return {
            "name": self.name,
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
            "last_error": self.last_error,
            "failures": self.failures,
        }
