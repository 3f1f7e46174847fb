"""Session Registry - creates, looks up and tracks membership of sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.session.entities import KaraokeSession
from ...domain.session.value_objects import SessionCode
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.exceptions import (
    CapacityExceededError,
    NotMemberError,
    NotOwnerError,
    SessionNotFoundError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .session_models import SessionInfo, SessionRef
from .session_store import SessionCodeTakenError, normalize_code

if TYPE_CHECKING:
    from ...config.settings import SessionSettings
    from .session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates sessions by code and enforces membership.

    A user belongs to at most one session at a time: creating or joining a
    session first leaves the previous one.
    """

    _MAX_CODE_ATTEMPTS: int = 32

    def __init__(self, *, session_store: SessionStore, settings: SessionSettings) -> None:
        self._store = session_store
        self._settings = settings

    async def create_session(self, owner_id: str, display_name: str | None = None) -> SessionRef:
        """Start a session owned by ``owner_id`` and return its code."""
        if len(self._store) >= self._settings.max_sessions:
            raise CapacityExceededError("Sessions", self._settings.max_sessions)

        await self._leave_previous(owner_id, keep=None)

        for _ in range(self._MAX_CODE_ATTEMPTS):
            code = SessionCode.generate(self._settings.code_length).value
            if code in self._store:
                logger.debug(LogTemplates.SESSION_CODE_COLLISION, code)
                continue

            session = KaraokeSession(code=code, owner_id=owner_id)
            session.add_member(owner_id, display_name)
            try:
                persisted = await self._store.add(session)
            except SessionCodeTakenError:
                logger.debug(LogTemplates.SESSION_CODE_COLLISION, code)
                continue

            logger.info(LogTemplates.SESSION_CREATED, code, owner_id)
            return SessionRef.of(session, joined=True, persisted=persisted)

        raise CapacityExceededError(
            "Session codes",
            self._MAX_CODE_ATTEMPTS,
            message=ErrorMessages.SESSION_CODES_EXHAUSTED,
        )

    async def join_session(
        self, code: str, user_id: str, display_name: str | None = None
    ) -> SessionRef:
        """Add ``user_id`` to a session; joining twice is a no-op."""
        code = normalize_code(code)
        if code not in self._store:
            raise SessionNotFoundError(code)

        await self._leave_previous(user_id, keep=code)

        async with self._store.transaction(code) as tx:
            joined = tx.session.add_member(user_id, display_name)

        if joined:
            logger.info(LogTemplates.SESSION_JOINED, user_id, code)
        return SessionRef.of(tx.session, joined=joined, persisted=tx.persisted)

    async def leave_session(self, code: str, user_id: str) -> bool:
        """Remove ``user_id`` from a session.

        The owner leaving keeps the session alive; owner-only commands stay
        bound to the owner id until they re-join.

        Returns:
            Whether the change reached the durable store.
        """
        code = normalize_code(code)
        async with self._store.transaction(code) as tx:
            if not tx.session.remove_member(user_id):
                raise NotMemberError(code, user_id)

        logger.info(LogTemplates.SESSION_LEFT, user_id, code)
        return tx.persisted

    async def end_session(self, code: str, user_id: str) -> bool:
        """Destroy a session; owner only."""
        code = normalize_code(code)
        async with self._store.transaction(code) as tx:
            if not tx.session.is_owner(user_id):
                raise NotOwnerError(code, user_id, "end the session")
            tx.end_session()

        logger.info(LogTemplates.SESSION_ENDED, code, user_id)
        return tx.persisted

    def get_session(self, code: str) -> KaraokeSession:
        return self._store.snapshot(normalize_code(code))

    def session_for_user(self, user_id: str) -> str | None:
        return self._store.find_member_session(user_id)

    def session_info(self, code: str) -> SessionInfo:
        session = self.get_session(code)
        return SessionInfo(
            code=session.code,
            owner_id=session.owner_id,
            members=list(session.members),
            state=session.state,
            cast_target=session.cast_target,
            queue_length=session.queue_length,
            history_length=len(session.history),
            created_at=session.created_at,
        )

    def uptime_seconds(self, code: str) -> float:
        session = self.get_session(code)
        return (utcnow() - session.created_at).total_seconds()

    async def _leave_previous(self, user_id: str, *, keep: str | None) -> None:
        previous = self._store.find_member_session(user_id)
        if previous is None or previous == keep:
            return
        try:
            await self.leave_session(previous, user_id)
        except (SessionNotFoundError, NotMemberError):
            # Raced with another leave or an expiry; nothing left to undo.
            return
