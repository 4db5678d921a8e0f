"""
Periodic expiry sweeps.

The sweeper is the only place that knows about timing: it runs one sweep
when the application starts and then one every interval until stopped.
"""

import asyncio
import logging
from datetime import timedelta
from typing import List, Optional

from .models import SweepResult
from .services import TrashManager

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = timedelta(hours=24)


class PeriodicSweeper:
    """Cancellable background task sweeping expired trash on an interval."""

    def __init__(
        self,
        trash_manager: TrashManager,
        interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        run_on_start: bool = True,
    ):
        """
        Initialize the sweeper.

        Args:
            trash_manager: Registry of the record kinds to sweep
            interval: Time between sweeps
            run_on_start: Sweep immediately when started

        Raises:
            ValueError: If the interval is not positive
        """
        if interval <= timedelta(0):
            raise ValueError("Sweep interval must be positive")

        self.trash_manager = trash_manager
        self.interval = interval
        self.run_on_start = run_on_start
        self.last_results: List[SweepResult] = []
        self.sweep_count = 0
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.is_running:
            return

        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Trash sweeper started (interval {self.interval}, "
            f"run on start: {self.run_on_start})"
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return

        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._task = None
        logger.info("Trash sweeper stopped")

    async def run_once(
        self, retention_period: Optional[timedelta] = None
    ) -> List[SweepResult]:
        """Sweep every managed record kind once."""
        results = await self.trash_manager.sweep_all(retention_period)
        self.last_results = results
        self.sweep_count += 1

        purged = sum(r.succeeded for r in results)
        failed = sum(r.failed for r in results)
        logger.info(f"Trash sweep {self.sweep_count}: {purged} purged, {failed} failed")
        return results

    async def _run(self) -> None:
        if self.run_on_start:
            await self._sweep_safely()

        while True:
            await asyncio.sleep(self.interval.total_seconds())
            await self._sweep_safely()

    async def _sweep_safely(self) -> None:
        try:
            await self.run_once()
        except Exception:
            # Keep the loop alive for the next interval
            logger.exception("Trash sweep failed")
