from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import datetime
    from typing import Final

    from .services import SessionRegistry

__all__ = ("SessionSweeper",)


LOGGER: Final = logging.getLogger(__name__)


class SessionSweeper:
    """Recurring task removing idle sessions.

    The sweeper is owned by the application lifecycle: :meth:`start` is
    registered as a startup hook and :meth:`stop` as a shutdown hook.

    Parameters
    ----------
    registry : SessionRegistry
        The registry to sweep.
    interval : datetime.timedelta
        Time between two sweeps.
    max_idle : datetime.timedelta
        Sessions idle for longer than this are removed.
    """

    __slots__ = ("_interval", "_max_idle", "_registry", "_task")

    _registry: SessionRegistry
    _interval: datetime.timedelta
    _max_idle: datetime.timedelta
    _task: asyncio.Task[None] | None

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        interval: datetime.timedelta,
        max_idle: datetime.timedelta,
    ) -> None:
        self._registry = registry
        self._interval = interval
        self._max_idle = max_idle
        self._task = None

    @property
    def running(self) -> bool:
        """Whether the recurring task is alive."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the recurring sweep, a no-op if it is already running."""
        if self.running:
            return

        self._task = asyncio.create_task(self._run(), name="session-sweeper")
        LOGGER.info(
            "Session sweeper started interval=%ss max_idle=%ss",
            self._interval.total_seconds(),
            self._max_idle.total_seconds(),
        )

    async def stop(self) -> None:
        """Cancel the recurring sweep and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        LOGGER.info("Session sweeper stopped.")

    async def sweep_once(self) -> int:
        """Run a single sweep, returns the number of sessions removed."""
        LOGGER.debug("Starting session cleanup job.")
        removed = await self._registry.sweep(self._max_idle)
        LOGGER.info("Session cleanup job completed. %s sessions removed.", removed)
        return removed

    async def _run(self) -> None:
        delay = self._interval.total_seconds()

        while True:
            await asyncio.sleep(delay)

            # A failed run is reported and retried on the next tick, the
            # schedule lives as long as the application.
            try:
                await self.sweep_once()
            except Exception:
                LOGGER.exception("Session cleanup job failed.")
