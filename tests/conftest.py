import asyncio

import pytest
import pytest_asyncio

from karaoke_queue.application.interfaces.cast_transport import CastDevice, CastTransport
from karaoke_queue.application.interfaces.link_resolver import LinkResolver, ResolvedLink
from karaoke_queue.domain.session.repository import SessionRepository
from karaoke_queue.domain.shared.exceptions import (
    CastTransportError,
    InvalidLinkError,
    PersistenceError,
)
from karaoke_queue.infrastructure.links.ytdlp_resolver import extract_video_id

# ============================================================================
# Fake Ports
# ============================================================================


class FakeLinkResolver(LinkResolver):
    """Resolves YouTube links offline; titles come from ``titles``."""

    def __init__(self, titles: dict[str, str] | None = None, delay: float = 0.0) -> None:
        self.titles = titles or {}
        self.delay = delay
        self.calls: list[str] = []

    def is_link(self, text: str) -> bool:
        return extract_video_id(text) is not None

    async def resolve(self, raw_url: str) -> ResolvedLink:
        self.calls.append(raw_url)
        if self.delay:
            await asyncio.sleep(self.delay)
        video_id = extract_video_id(raw_url)
        if video_id is None:
            raise InvalidLinkError(raw_url)
        return ResolvedLink(video_id=video_id, url=raw_url.strip(), title=self.titles.get(video_id))


class FakeCastTransport(CastTransport):
    """Records play commands; can fail, stall or block until released."""

    def __init__(self, device_names: list[str] | None = None) -> None:
        self.devices = [CastDevice.named(name) for name in (device_names or ["Living Room"])]
        self.played: list[tuple[str, str]] = []
        self.error: Exception | None = None
        self.delay: float = 0.0
        self.gate: asyncio.Event | None = None
        self.play_started = asyncio.Event()

    async def list_devices(self) -> list[CastDevice]:
        return list(self.devices)

    async def play(self, device_id: str, video_id: str) -> None:
        self.play_started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.played.append((device_id, video_id))


class FlakyRepository(SessionRepository):
    """Wraps a repository and fails writes while ``failing`` is set."""

    def __init__(self, inner: SessionRepository) -> None:
        self.inner = inner
        self.failing = False
        self.save_calls = 0

    def _check(self, operation: str) -> None:
        if self.failing:
            raise PersistenceError(operation, "disk unavailable")

    async def get(self, code):
        return await self.inner.get(code)

    async def save(self, session):
        self.save_calls += 1
        self._check("save")
        await self.inner.save(session)

    async def delete(self, code):
        self._check("delete")
        return await self.inner.delete(code)

    async def exists(self, code):
        return await self.inner.exists(code)

    async def get_all(self):
        return await self.inner.get_all()

    async def list_codes(self):
        return await self.inner.list_codes()

    async def count(self):
        return await self.inner.count()


def youtube_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from karaoke_queue.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session_repository(in_memory_database):
    """Create a session repository with in-memory database."""
    from karaoke_queue.infrastructure.persistence.repositories.session_repository import (
        SQLiteSessionRepository,
    )

    return SQLiteSessionRepository(in_memory_database)


@pytest_asyncio.fixture
async def flaky_repository(session_repository):
    return FlakyRepository(session_repository)


@pytest_asyncio.fixture
async def session_store(flaky_repository):
    """Session store over the in-memory repository (writes can be made to fail)."""
    from karaoke_queue.application.services.session_store import SessionStore

    store = SessionStore(flaky_repository)
    await store.load()
    return store


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def session_settings():
    from karaoke_queue.config.settings import SessionSettings

    return SessionSettings(max_sessions=50, max_queue_size=20)


@pytest.fixture
def link_resolver():
    return FakeLinkResolver(titles={"aaaaaaaaaaa": "First Song", "bbbbbbbbbbb": "Second Song"})


@pytest.fixture
def cast_transport():
    return FakeCastTransport()


@pytest.fixture
def registry(session_store, session_settings):
    from karaoke_queue.application.services.session_registry import SessionRegistry

    return SessionRegistry(session_store=session_store, settings=session_settings)


@pytest.fixture
def queue_engine(session_store, link_resolver, session_settings):
    from karaoke_queue.application.services.queue_service import QueueEngine

    return QueueEngine(
        session_store=session_store,
        link_resolver=link_resolver,
        settings=session_settings,
        resolve_timeout=0.5,
    )


@pytest.fixture
def cast_orchestrator(session_store, cast_transport):
    from karaoke_queue.application.services.cast_service import CastOrchestrator

    return CastOrchestrator(
        session_store=session_store,
        cast_transport=cast_transport,
        timeout_seconds=0.5,
    )


@pytest.fixture
def dispatcher(registry, queue_engine, cast_orchestrator, link_resolver):
    from karaoke_queue.application.commands.dispatcher import CommandDispatcher

    return CommandDispatcher(
        session_registry=registry,
        queue_engine=queue_engine,
        cast_orchestrator=cast_orchestrator,
        link_resolver=link_resolver,
    )
