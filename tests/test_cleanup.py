"""Tests for the idle session cleanup job."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from karaoke_queue.config.settings import CleanupSettings
from karaoke_queue.domain.session.entities import KaraokeSession
from karaoke_queue.domain.shared.datetime_utils import utcnow
from karaoke_queue.infrastructure.persistence.cleanup import CleanupJob


def _session(code: str, idle_hours: float = 0) -> KaraokeSession:
    session = KaraokeSession(code=code, owner_id="owner")
    session.add_member("owner")
    session.last_activity = utcnow() - timedelta(hours=idle_hours)
    return session


@pytest.fixture
def cleanup_job(session_store):
    return CleanupJob(session_store=session_store, settings=CleanupSettings(stale_session_hours=6))


class TestRunCleanup:
    @pytest.mark.asyncio
    async def test_expires_idle_sessions(self, cleanup_job, session_store, session_repository):
        await session_store.add(_session("IDLE01", idle_hours=7))
        await session_store.add(_session("BUSY01", idle_hours=1))

        stats = await cleanup_job.run_cleanup()

        assert stats.sessions_expired == 1
        assert session_store.codes() == ["BUSY01"]
        assert await session_repository.list_codes() == ["BUSY01"]

    @pytest.mark.asyncio
    async def test_nothing_to_expire(self, cleanup_job):
        stats = await cleanup_job.run_cleanup()
        assert stats.sessions_expired == 0

    @pytest.mark.asyncio
    async def test_unsaved_sessions_are_written_again(
        self, cleanup_job, session_store, flaky_repository, session_repository
    ):
        flaky_repository.failing = True
        await session_store.add(_session("ROOM01"))
        flaky_repository.failing = False

        stats = await cleanup_job.run_cleanup()

        assert stats.sessions_flushed == 1
        assert stats.still_unsaved == 0
        assert session_store.unsaved_codes == set()
        assert await session_repository.exists("ROOM01")

    @pytest.mark.asyncio
    async def test_reports_sessions_still_unsaved(self, cleanup_job, session_store, flaky_repository):
        flaky_repository.failing = True
        await session_store.add(_session("ROOM01"))

        stats = await cleanup_job.run_cleanup()

        assert stats.sessions_flushed == 0
        assert stats.still_unsaved == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_contained(self, session_store):
        session_store.expire = AsyncMock(side_effect=RuntimeError("boom"))
        job = CleanupJob(session_store=session_store, settings=CleanupSettings())

        stats = await job.run_cleanup()

        assert stats.sessions_expired == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_runs_a_cycle_and_stop_cancels(self, cleanup_job, session_store):
        await session_store.add(_session("IDLE01", idle_hours=10))

        cleanup_job.start()
        assert cleanup_job.is_running
        await asyncio.sleep(0.05)
        await cleanup_job.stop()

        assert not cleanup_job.is_running
        assert "IDLE01" not in session_store

    @pytest.mark.asyncio
    async def test_double_start_is_ignored(self, cleanup_job):
        cleanup_job.start()
        first_task = cleanup_job._task
        cleanup_job.start()

        assert cleanup_job._task is first_task
        await cleanup_job.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, cleanup_job):
        await cleanup_job.stop()
        assert not cleanup_job.is_running
