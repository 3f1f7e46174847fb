"""In-memory registry of live sessions with per-session serialization.

Every mutation runs inside :meth:`SessionStore.transaction`, which holds that
session's lock, works on a private copy, publishes the copy on success and
writes it through to the repository before the lock is released. Readers get
deep copies of the last published session, so they never observe a half
applied change and never block writers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING

from ...domain.session.value_objects import SessionCode
from ...domain.shared.exceptions import PersistenceError, SessionNotFoundError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.session.entities import KaraokeSession
    from ...domain.session.repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionCodeTakenError(Exception):
    """Raised when a freshly generated code is already assigned."""


def normalize_code(raw: str) -> str:
    """Canonicalize a user-typed code; malformed codes can never match a session."""
    try:
        return SessionCode.normalize(raw).value
    except ValueError:
        raise SessionNotFoundError(raw.strip()) from None


class SessionTransaction:
    """Handle yielded by :meth:`SessionStore.transaction`."""

    def __init__(self, session: KaraokeSession) -> None:
        self.session = session
        self.persisted = True
        self.ended = False

    def end_session(self) -> None:
        """Delete the session instead of saving it when the block exits."""
        self.ended = True


class SessionStore:
    """Owns the live sessions; constructed at startup, flushed on shutdown."""

    def __init__(self, repository: SessionRepository) -> None:
        self._repo = repository
        self._sessions: dict[str, KaraokeSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._unsaved: set[str] = set()
        # Ended sessions whose delete has not reached the repository yet.
        self._undeleted: set[str] = set()

    async def load(self) -> int:
        """Rebuild in-memory state from the repository.

        Raises:
            PersistenceError: If the stored sessions cannot be read.
        """
        sessions = await self._repo.get_all()
        self._sessions = {session.code: session for session in sessions}
        self._unsaved.clear()
        self._undeleted.clear()
        logger.info(LogTemplates.STORE_LOADED, len(self._sessions))
        return len(self._sessions)

    async def close(self) -> int:
        """Retry writes that failed earlier; returns how many are still unsaved."""
        remaining = await self.flush_unsaved()
        if remaining:
            logger.error(LogTemplates.STORE_UNSAVED_ON_CLOSE, remaining)
        return remaining

    async def flush_unsaved(self) -> int:
        """Write again every session whose last write or delete failed.

        Returns:
            How many sessions are still unsaved afterwards.
        """
        for code in sorted(self._undeleted):
            async with self._lock(code):
                if code in self._sessions:
                    self._undeleted.discard(code)
                    continue
                await self._delete(code)
            if code not in self._undeleted:
                self._locks.pop(code, None)
        for code in sorted(self._unsaved):
            async with self._lock(code):
                session = self._sessions.get(code)
                if session is None:
                    self._unsaved.discard(code)
                    continue
                await self._write(session)
        return len(self._unsaved) + len(self._undeleted)

    def __contains__(self, code: object) -> bool:
        return code in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def codes(self) -> list[str]:
        return list(self._sessions)

    @property
    def unsaved_codes(self) -> set[str]:
        return self._unsaved | self._undeleted

    def _lock(self, code: str) -> asyncio.Lock:
        lock = self._locks.get(code)
        if lock is None:
            lock = self._locks[code] = asyncio.Lock()
        return lock

    def _require(self, code: str) -> KaraokeSession:
        session = self._sessions.get(code)
        if session is None:
            raise SessionNotFoundError(code)
        return session

    # === Reads ===

    def snapshot(self, code: str) -> KaraokeSession:
        """Return a private copy of the last committed state of a session."""
        return self._require(code).model_copy(deep=True)

    def find_member_session(self, user_id: str) -> str | None:
        """Return the code of the session the user belongs to, if any."""
        for code, session in self._sessions.items():
            if session.is_member(user_id):
                return code
        return None

    def stale_codes(self, older_than: datetime) -> list[str]:
        return [
            code
            for code, session in self._sessions.items()
            if session.last_activity < older_than
        ]

    # === Writes ===

    async def add(self, session: KaraokeSession) -> bool:
        """Register a brand new session and persist it.

        Returns:
            Whether the write reached the durable store.

        Raises:
            SessionCodeTakenError: If the code is already assigned.
        """
        async with self._lock(session.code):
            if session.code in self._sessions:
                raise SessionCodeTakenError(session.code)
            published = session.model_copy(deep=True)
            self._sessions[session.code] = published
            self._undeleted.discard(session.code)
            return await self._write(published)

    @asynccontextmanager
    async def transaction(self, code: str) -> AsyncIterator[SessionTransaction]:
        """Serialize a mutation of one session.

        Changes are made on a copy; if the block raises, nothing is published
        and nothing is written.

        Raises:
            SessionNotFoundError: If the code is unknown (also when the session
                disappeared while waiting for the lock).
        """
        async with self._lock(code):
            tx = SessionTransaction(self._require(code).model_copy(deep=True))
            yield tx

            if tx.ended:
                del self._sessions[code]
                self._unsaved.discard(code)
                tx.persisted = await self._delete(code)
            else:
                self._sessions[code] = tx.session
                tx.persisted = await self._write(tx.session)

        if tx.ended:
            self._locks.pop(code, None)

    async def expire(self, older_than: datetime) -> list[str]:
        """Drop sessions idle since before ``older_than``."""
        expired: list[str] = []
        for code in self.stale_codes(older_than):
            try:
                async with self.transaction(code) as tx:
                    if tx.session.last_activity >= older_than:
                        continue
                    tx.end_session()
            except SessionNotFoundError:
                continue
            expired.append(code)

        if expired:
            logger.info(LogTemplates.SESSIONS_EXPIRED, len(expired))
        return expired

    async def _write(self, session: KaraokeSession) -> bool:
        try:
            await self._repo.save(session)
        except PersistenceError as exc:
            self._unsaved.add(session.code)
            logger.warning(LogTemplates.STORE_WRITE_FAILED, session.code, exc.message)
            return False

        self._unsaved.discard(session.code)
        return True

    async def _delete(self, code: str) -> bool:
        try:
            await self._repo.delete(code)
        except PersistenceError as exc:
            self._undeleted.add(code)
            logger.warning(LogTemplates.STORE_DELETE_FAILED, code, exc.message)
            return False

        self._undeleted.discard(code)
        return True
