"""Queue Engine - ordering, dedup and fairness for one session's queue."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.shared.exceptions import (
    LinkResolutionError,
    NotMemberError,
    NotOwnerError,
)
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import NOTE_MAX_LENGTH
from .session_models import EnqueueResult, RemoveResult
from .session_store import normalize_code

if TYPE_CHECKING:
    from ...config.settings import SessionSettings
    from ...domain.session.entities import QueueItem
    from ..interfaces.link_resolver import LinkResolver
    from .session_store import SessionStore

logger = logging.getLogger(__name__)


def clip_note(note: str | None) -> str | None:
    """Trim a free-text note to what a queue item can hold; blank notes become None."""
    if note is None:
        return None
    note = note.strip()[:NOTE_MAX_LENGTH].rstrip()
    return note or None


class QueueEngine:
    """Manages queue operations (submit, enqueue, peek, advance, remove) for sessions."""

    def __init__(
        self,
        *,
        session_store: SessionStore,
        link_resolver: LinkResolver,
        settings: SessionSettings,
        resolve_timeout: float = 15.0,
    ) -> None:
        self._store = session_store
        self._resolver = link_resolver
        self._settings = settings
        self._resolve_timeout = resolve_timeout

    async def submit_link(
        self,
        code: str,
        user_id: str,
        raw_url: str,
        *,
        note: str | None = None,
        submitter_name: str | None = None,
    ) -> EnqueueResult:
        """Resolve a raw link and enqueue the resulting video.

        The resolver runs outside the session lock; dedup and membership are
        checked again when the item is committed.

        Raises:
            InvalidLinkError: If the resolver rejects the link.
            LinkResolutionError: If the resolver does not answer in time.
        """
        code = normalize_code(code)
        if not self._store.snapshot(code).is_member(user_id):
            raise NotMemberError(code, user_id)

        try:
            async with asyncio.timeout(self._resolve_timeout):
                resolved = await self._resolver.resolve(raw_url)
        except TimeoutError:
            logger.warning(LogTemplates.LINK_RESOLVE_TIMEOUT, raw_url, self._resolve_timeout)
            raise LinkResolutionError(raw_url) from None

        return await self.enqueue(
            code,
            resolved.video_id,
            user_id,
            resolved.title,
            url=resolved.url,
            note=note,
            submitter_name=submitter_name,
        )

    async def enqueue(
        self,
        code: str,
        video_id: str,
        submitted_by: str,
        title: str | None = None,
        *,
        url: str | None = None,
        note: str | None = None,
        submitter_name: str | None = None,
    ) -> EnqueueResult:
        """Insert an already-resolved video at its fairness position.

        Raises:
            DuplicateItemError: If the video is queued or currently playing.
            NotMemberError: If the submitter has not joined the session.
            CapacityExceededError: If the queue is full.
        """
        code = normalize_code(code)
        note = clip_note(note)
        async with self._store.transaction(code) as tx:
            if not tx.session.is_member(submitted_by):
                raise NotMemberError(code, submitted_by)
            item, position = tx.session.enqueue(
                video_id=video_id,
                submitted_by=submitted_by,
                title=title,
                url=url,
                note=note,
                submitter_name=submitter_name,
                max_queue_size=self._settings.max_queue_size,
            )

        logger.info(LogTemplates.QUEUE_ENQUEUED, video_id, position, code)
        return EnqueueResult(
            item=item,
            position=position,
            queue_length=tx.session.queue_length,
            persisted=tx.persisted,
        )

    def peek(self, code: str) -> QueueItem | None:
        return self._store.snapshot(normalize_code(code)).peek()

    def queue(self, code: str) -> list[QueueItem]:
        """Waiting items in the order they will be played."""
        return list(self._store.snapshot(normalize_code(code)).queue)

    async def advance(self, code: str) -> QueueItem | None:
        """Pop the front item without touching current/history."""
        code = normalize_code(code)
        async with self._store.transaction(code) as tx:
            item = tx.session.advance()

        if item is not None:
            logger.debug(LogTemplates.QUEUE_ADVANCED, item.video_id, code)
        return item

    async def remove(self, code: str, video_id: str, user_id: str) -> RemoveResult | None:
        """Withdraw a waiting item; allowed for the owner and the submitter.

        Returns:
            The removed item, or None if the video is not waiting in the queue.
        """
        code = normalize_code(code)
        async with self._store.transaction(code) as tx:
            session = tx.session
            target = next((item for item in session.queue if item.video_id == video_id), None)
            if target is None:
                return None
            if not (session.is_owner(user_id) or target.was_submitted_by(user_id)):
                raise NotOwnerError(code, user_id, "remove other people's videos")
            session.remove_item(video_id)

        logger.info(LogTemplates.QUEUE_REMOVED, video_id, code)
        return RemoveResult(item=target, persisted=tx.persisted)
