"""Background maintenance of the session store.

Each cycle expires sessions that have been idle longer than
``stale_session_hours`` and writes again any session whose last write
failed, so a transient disk problem does not have to wait for shutdown.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel

from karaoke_queue.domain.shared.datetime_utils import utcnow
from karaoke_queue.domain.shared.messages import LogTemplates
from karaoke_queue.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from ...application.services.session_store import SessionStore
    from ...config.settings import CleanupSettings

logger = logging.getLogger(__name__)


class CleanupStats(BaseModel):
    sessions_expired: NonNegativeInt = 0
    sessions_flushed: NonNegativeInt = 0
    still_unsaved: NonNegativeInt = 0


class CleanupJob:
    def __init__(self, *, session_store: SessionStore, settings: CleanupSettings) -> None:
        self._store = session_store
        self._settings = settings
        self._stop_requested = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.warning(LogTemplates.CLEANUP_ALREADY_RUNNING)
            return

        self._stop_requested.clear()
        self._task = asyncio.create_task(self._run_loop(), name="session-cleanup")
        logger.info(LogTemplates.CLEANUP_STARTED)

    async def stop(self) -> None:
        """Ask the loop to finish; a cycle in progress is cancelled."""
        self._stop_requested.set()
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info(LogTemplates.CLEANUP_STOPPED)

    async def _run_loop(self) -> None:
        interval = self._settings.cleanup_interval_minutes * 60
        while not self._stop_requested.is_set():
            try:
                await self.run_cleanup()
            except Exception:
                logger.exception(LogTemplates.CLEANUP_CYCLE_FAILED)

            # Sleeps for one interval unless stop() is called first.
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_requested.wait(), timeout=interval)

    async def run_cleanup(self) -> CleanupStats:
        """Run one maintenance cycle. Failures of one step do not skip the other."""
        logger.debug(LogTemplates.CLEANUP_CYCLE_RUNNING)
        stats = CleanupStats()

        cutoff = utcnow() - timedelta(hours=self._settings.stale_session_hours)
        try:
            stats.sessions_expired = len(await self._store.expire(cutoff))
        except Exception as e:
            logger.error(LogTemplates.CLEANUP_SESSIONS_FAILED, e)

        pending = len(self._store.unsaved_codes)
        if pending:
            try:
                stats.still_unsaved = await self._store.flush_unsaved()
                stats.sessions_flushed = pending - stats.still_unsaved
            except Exception as e:
                stats.still_unsaved = pending
                logger.error(LogTemplates.CLEANUP_FLUSH_FAILED, e)

        if stats.sessions_expired or stats.sessions_flushed:
            logger.info(
                LogTemplates.CLEANUP_COMPLETED, stats.sessions_expired, stats.sessions_flushed
            )
        if stats.still_unsaved:
            logger.warning(LogTemplates.CLEANUP_STILL_UNSAVED, stats.still_unsaved)
        return stats
