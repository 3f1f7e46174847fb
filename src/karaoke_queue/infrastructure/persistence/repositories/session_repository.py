"""SQLite implementation of the session repository."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import aiosqlite
from pydantic import ValidationError

from karaoke_queue.domain.session.entities import KaraokeSession, Member, QueueItem
from karaoke_queue.domain.session.repository import SessionRepository
from karaoke_queue.domain.session.value_objects import ItemSlot
from karaoke_queue.domain.shared.datetime_utils import UtcDateTime
from karaoke_queue.domain.shared.exceptions import PersistenceError
from karaoke_queue.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_INSERT_ITEM = """
    INSERT INTO session_items (
        code, slot, position, video_id, submitted_by, submitter_name,
        title, url, note, sequence, fairness_rank, submitted_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver and filesystem failures into ``PersistenceError``."""
    try:
        yield
    except (aiosqlite.Error, OSError) as exc:
        logger.error(LogTemplates.DATABASE_OPERATION_FAILED, operation, exc)
        raise PersistenceError(operation, str(exc)) from exc


class SQLiteSessionRepository(SessionRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, code: str) -> KaraokeSession | None:
        with _storage_errors("get"):
            session_row = await self._db.fetch_one(
                "SELECT * FROM karaoke_sessions WHERE code = ?",
                (code,),
            )
            if session_row is None:
                return None

            member_rows = await self._db.fetch_all(
                "SELECT * FROM session_members WHERE code = ? ORDER BY position ASC",
                (code,),
            )
            item_rows = await self._db.fetch_all(
                "SELECT * FROM session_items WHERE code = ? ORDER BY slot, position ASC",
                (code,),
            )

        try:
            return self._rows_to_session(session_row, member_rows, item_rows)
        except (ValidationError, ValueError) as exc:
            raise PersistenceError(
                "get", ErrorMessages.CORRUPT_SESSION_ROW.format(code=code, error=exc)
            ) from exc

    async def save(self, session: KaraokeSession) -> None:
        """Replace the stored record of ``session`` in a single transaction."""
        with _storage_errors("save"):
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO karaoke_sessions (
                        code, owner_id, cast_target, next_sequence, playback_epoch,
                        created_at, last_activity
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(code) DO UPDATE SET
                        owner_id = excluded.owner_id,
                        cast_target = excluded.cast_target,
                        next_sequence = excluded.next_sequence,
                        playback_epoch = excluded.playback_epoch,
                        last_activity = excluded.last_activity
                    """,
                    (
                        session.code,
                        session.owner_id,
                        session.cast_target,
                        session.next_sequence,
                        session.playback_epoch,
                        UtcDateTime(session.created_at).iso,
                        UtcDateTime(session.last_activity).iso,
                    ),
                )

                await conn.execute("DELETE FROM session_members WHERE code = ?", (session.code,))
                await conn.execute("DELETE FROM session_items WHERE code = ?", (session.code,))

                for position, member in enumerate(session.members):
                    await conn.execute(
                        """
                        INSERT INTO session_members (code, user_id, display_name, joined_at, position)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            session.code,
                            member.user_id,
                            member.display_name,
                            UtcDateTime(member.joined_at).iso,
                            position,
                        ),
                    )

                if session.current is not None:
                    await conn.execute(
                        _INSERT_ITEM,
                        self._item_to_params(session.current, session.code, ItemSlot.CURRENT, 0),
                    )
                for position, item in enumerate(session.queue):
                    await conn.execute(
                        _INSERT_ITEM,
                        self._item_to_params(item, session.code, ItemSlot.QUEUE, position),
                    )
                for position, item in enumerate(session.history):
                    await conn.execute(
                        _INSERT_ITEM,
                        self._item_to_params(item, session.code, ItemSlot.HISTORY, position),
                    )

        logger.debug(LogTemplates.SESSION_SAVED, session.code)

    async def delete(self, code: str) -> bool:
        with _storage_errors("delete"):
            async with self._db.transaction() as conn:
                await conn.execute("DELETE FROM session_items WHERE code = ?", (code,))
                await conn.execute("DELETE FROM session_members WHERE code = ?", (code,))
                cursor = await conn.execute("DELETE FROM karaoke_sessions WHERE code = ?", (code,))
                deleted = cursor.rowcount > 0

        if deleted:
            logger.debug(LogTemplates.SESSION_DELETED, code)
        return deleted

    async def exists(self, code: str) -> bool:
        with _storage_errors("exists"):
            row = await self._db.fetch_one(
                "SELECT 1 FROM karaoke_sessions WHERE code = ?",
                (code,),
            )
        return row is not None

    async def get_all(self) -> list[KaraokeSession]:
        """Load every session with three queries rather than three per session."""
        with _storage_errors("get_all"):
            session_rows = await self._db.fetch_all(
                "SELECT * FROM karaoke_sessions ORDER BY created_at ASC"
            )
            member_rows = await self._db.fetch_all(
                "SELECT * FROM session_members ORDER BY code, position ASC"
            )
            item_rows = await self._db.fetch_all(
                "SELECT * FROM session_items ORDER BY code, slot, position ASC"
            )

        members_by_code: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for row in member_rows:
            members_by_code[row["code"]].append(row)
        items_by_code: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for row in item_rows:
            items_by_code[row["code"]].append(row)

        sessions: list[KaraokeSession] = []
        for row in session_rows:
            code = row["code"]
            try:
                sessions.append(
                    self._rows_to_session(row, members_by_code[code], items_by_code[code])
                )
            except (ValidationError, ValueError) as exc:
                logger.warning(LogTemplates.SESSION_ROW_SKIPPED, code, exc)
        return sessions

    async def list_codes(self) -> list[str]:
        with _storage_errors("list_codes"):
            rows = await self._db.fetch_all("SELECT code FROM karaoke_sessions")
        return [row["code"] for row in rows]

    async def count(self) -> int:
        with _storage_errors("count"):
            row = await self._db.fetch_one("SELECT COUNT(*) as count FROM karaoke_sessions")
        return row["count"] if row else 0

    def _rows_to_session(
        self,
        session_row: dict[str, Any],
        member_rows: list[dict[str, Any]],
        item_rows: list[dict[str, Any]],
    ) -> KaraokeSession:
        queue: list[QueueItem] = []
        history: list[QueueItem] = []
        current: QueueItem | None = None

        for row in item_rows:
            item = self._row_to_item(row)
            slot = ItemSlot(row["slot"])
            if slot is ItemSlot.CURRENT:
                current = item
            elif slot is ItemSlot.QUEUE:
                queue.append(item)
            else:
                history.append(item)

        members = [
            Member(
                user_id=row["user_id"],
                display_name=row["display_name"],
                joined_at=UtcDateTime.from_iso(row["joined_at"]).dt,
            )
            for row in member_rows
        ]

        return KaraokeSession(
            code=session_row["code"],
            owner_id=session_row["owner_id"],
            members=members,
            queue=queue,
            current=current,
            history=history,
            cast_target=session_row["cast_target"],
            next_sequence=session_row["next_sequence"],
            playback_epoch=session_row["playback_epoch"],
            created_at=UtcDateTime.from_iso(session_row["created_at"]).dt,
            last_activity=UtcDateTime.from_iso(session_row["last_activity"]).dt,
        )

    def _row_to_item(self, row: dict[str, Any]) -> QueueItem:
        return QueueItem(
            video_id=row["video_id"],
            submitted_by=row["submitted_by"],
            submitter_name=row["submitter_name"],
            title=row["title"],
            url=row["url"],
            note=row["note"],
            sequence=row["sequence"],
            fairness_rank=row["fairness_rank"],
            submitted_at=UtcDateTime.from_iso(row["submitted_at"]).dt,
        )

    def _item_to_params(
        self, item: QueueItem, code: str, slot: ItemSlot, position: int
    ) -> tuple:
        return (
            code,
            slot.value,
            position,
            item.video_id,
            item.submitted_by,
            item.submitter_name,
            item.title,
            item.url,
            item.note,
            item.sequence,
            item.fairness_rank,
            UtcDateTime(item.submitted_at).iso,
        )
