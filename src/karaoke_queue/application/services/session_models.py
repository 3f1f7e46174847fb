"""DTOs returned by the session application services.

Every mutating result carries ``persisted``: False means the change is live
in memory but the durable write failed, so a crash before the next
successful write would lose it.
"""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.session.entities import KaraokeSession, Member, QueueItem
from ...domain.session.value_objects import CastState
from ...domain.shared.types import NonNegativeInt, UtcDatetimeField
from ..interfaces.cast_transport import CastDevice


class SessionRef(BaseModel):
    code: str
    owner_id: str
    member_ids: list[str]
    joined: bool = False
    persisted: bool = True

    @classmethod
    def of(cls, session: KaraokeSession, *, joined: bool = False, persisted: bool = True) -> SessionRef:
        return cls(
            code=session.code,
            owner_id=session.owner_id,
            member_ids=[member.user_id for member in session.members],
            joined=joined,
            persisted=persisted,
        )


class SessionInfo(BaseModel):
    code: str
    owner_id: str
    members: list[Member]
    state: CastState
    cast_target: str | None
    queue_length: NonNegativeInt
    history_length: NonNegativeInt
    created_at: UtcDatetimeField


class EnqueueResult(BaseModel):
    item: QueueItem
    position: NonNegativeInt
    queue_length: NonNegativeInt
    persisted: bool = True


class RemoveResult(BaseModel):
    item: QueueItem
    persisted: bool = True


class NextResult(BaseModel):
    """Outcome of a ``next`` transition."""

    previous: QueueItem | None = None
    current: QueueItem | None = None
    device_id: str | None = None
    superseded: bool = False
    persisted: bool = True

    @property
    def exhausted(self) -> bool:
        return self.current is None and not self.superseded


class DeviceResult(BaseModel):
    device: CastDevice
    persisted: bool = True
