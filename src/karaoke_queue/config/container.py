"""Dependency Injection Container

Builds the application's object graph lazily and owns its lifecycle:
database, repository, session store, ports, services, dispatcher and the
cleanup job. Components are created on first access and reused afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.commands.dispatcher import CommandDispatcher
    from ..application.interfaces.cast_transport import CastTransport
    from ..application.interfaces.link_resolver import LinkResolver
    from ..application.services.cast_service import CastOrchestrator
    from ..application.services.queue_service import QueueEngine
    from ..application.services.session_registry import SessionRegistry
    from ..application.services.session_store import SessionStore
    from ..domain.session.repository import SessionRepository
    from ..infrastructure.persistence.cleanup import CleanupJob
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Ports can be overridden before first use by assigning
    ``_link_resolver`` / ``_cast_transport``.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _session_repository: SessionRepository | None = None
    _session_store: SessionStore | None = None

    # Infrastructure adapters
    _link_resolver: LinkResolver | None = None
    _cast_transport: CastTransport | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _queue_engine: QueueEngine | None = None
    _cast_orchestrator: CastOrchestrator | None = None
    _dispatcher: CommandDispatcher | None = None

    # Background jobs
    _cleanup_job: CleanupJob | None = None

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def session_repository(self) -> SessionRepository:
        if self._session_repository is None:
            from ..infrastructure.persistence.repositories.session_repository import (
                SQLiteSessionRepository,
            )

            self._session_repository = SQLiteSessionRepository(self.database)
        return self._session_repository

    @property
    def session_store(self) -> SessionStore:
        if self._session_store is None:
            from ..application.services.session_store import SessionStore

            self._session_store = SessionStore(self.session_repository)
        return self._session_store

    # === Adapters ===

    @property
    def link_resolver(self) -> LinkResolver:
        if self._link_resolver is None:
            from ..infrastructure.links.ytdlp_resolver import YtDlpLinkResolver

            self._link_resolver = YtDlpLinkResolver(self.settings.resolver)
        return self._link_resolver

    @property
    def cast_transport(self) -> CastTransport:
        if self._cast_transport is None:
            from ..infrastructure.cast.logging_transport import LoggingCastTransport

            self._cast_transport = LoggingCastTransport.from_settings(self.settings.cast)
        return self._cast_transport

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                session_store=self.session_store,
                settings=self.settings.session,
            )
        return self._session_registry

    @property
    def queue_engine(self) -> QueueEngine:
        if self._queue_engine is None:
            from ..application.services.queue_service import QueueEngine

            self._queue_engine = QueueEngine(
                session_store=self.session_store,
                link_resolver=self.link_resolver,
                settings=self.settings.session,
                resolve_timeout=self.settings.resolver.timeout_seconds,
            )
        return self._queue_engine

    @property
    def cast_orchestrator(self) -> CastOrchestrator:
        if self._cast_orchestrator is None:
            from ..application.services.cast_service import CastOrchestrator

            self._cast_orchestrator = CastOrchestrator(
                session_store=self.session_store,
                cast_transport=self.cast_transport,
                timeout_seconds=self.settings.cast.timeout_seconds,
            )
        return self._cast_orchestrator

    @property
    def dispatcher(self) -> CommandDispatcher:
        """Get the chat command dispatcher."""
        if self._dispatcher is None:
            from ..application.commands.dispatcher import CommandDispatcher

            self._dispatcher = CommandDispatcher(
                session_registry=self.session_registry,
                queue_engine=self.queue_engine,
                cast_orchestrator=self.cast_orchestrator,
                link_resolver=self.link_resolver,
            )
        return self._dispatcher

    # === Background Jobs ===

    @property
    def cleanup_job(self) -> CleanupJob:
        if self._cleanup_job is None:
            from ..infrastructure.persistence.cleanup import CleanupJob

            self._cleanup_job = CleanupJob(
                session_store=self.session_store,
                settings=self.settings.cleanup,
            )
        return self._cleanup_job

    # === Lifecycle ===

    async def initialize(self, *, start_cleanup: bool = True) -> None:
        """Open the database and rebuild live sessions from it."""
        await self.database.initialize()
        await self.session_store.load()
        if start_cleanup:
            self.cleanup_job.start()

    async def shutdown(self) -> None:
        """Stop background work, flush unsaved sessions and close the database."""
        if self._cleanup_job is not None:
            try:
                await self._cleanup_job.stop()
            except Exception as exc:
                logger.warning("Failed stopping cleanup job: %r", exc)

        if self._session_store is not None:
            await self._session_store.close()

        if self._database is not None:
            await self._database.close()

        logger.info(LogTemplates.APP_CONTAINER_SHUTDOWN)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
