"""Core domain entities for the session bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..shared.datetime_utils import utcnow
from ..shared.exceptions import CapacityExceededError, DuplicateItemError
from ..shared.types import (
    DeviceIdStr,
    NonEmptyStr,
    NonNegativeInt,
    NoteStr,
    SessionCodeStr,
    TitleStr,
    UserIdStr,
    UtcDatetimeField,
    VideoIdStr,
)
from .services import FairnessPolicy
from .value_objects import CastState


class QueueItem(BaseModel):
    """Immutable record of one submitted, resolved video."""

    model_config = ConfigDict(frozen=True, strict=True)

    video_id: VideoIdStr
    submitted_by: UserIdStr
    title: TitleStr | None = None
    url: NonEmptyStr | None = None
    note: NoteStr | None = None
    submitter_name: NonEmptyStr | None = None

    # Ordering metadata, fixed at insertion
    sequence: NonNegativeInt = 0
    fairness_rank: NonNegativeInt = 0
    submitted_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def display_title(self) -> str:
        return self.title or self.url or self.video_id

    @property
    def display_submitter(self) -> str:
        return self.submitter_name or self.submitted_by

    def was_submitted_by(self, user_id: str) -> bool:
        return self.submitted_by == user_id


class Member(BaseModel):
    """A participant of a session."""

    model_config = ConfigDict(frozen=True, strict=True)

    user_id: UserIdStr
    display_name: NonEmptyStr | None = None
    joined_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def label(self) -> str:
        return self.display_name or "Anonymous"


class KaraokeSession(BaseModel):
    """Aggregate root holding the shared queue and playback state of one session."""

    model_config = ConfigDict(strict=True)

    code: SessionCodeStr
    owner_id: UserIdStr
    members: list[Member] = Field(default_factory=list)
    queue: list[QueueItem] = Field(default_factory=list)
    current: QueueItem | None = None
    history: list[QueueItem] = Field(default_factory=list)
    cast_target: DeviceIdStr | None = None

    next_sequence: NonNegativeInt = 0
    # Bumped by every playback transition so a late cast result can tell
    # whether it was overtaken.
    playback_epoch: NonNegativeInt = 0

    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    last_activity: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def state(self) -> CastState:
        return CastState.PLAYING if self.current is not None else CastState.IDLE

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def member_ids(self) -> set[str]:
        return {member.user_id for member in self.members}

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = utcnow()

    # === Membership ===

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def is_member(self, user_id: str) -> bool:
        return any(member.user_id == user_id for member in self.members)

    def add_member(self, user_id: str, display_name: str | None = None) -> bool:
        """Add a member; returns False if they already joined."""
        if self.is_member(user_id):
            return False
        self.members.append(Member(user_id=user_id, display_name=display_name))
        self.touch()
        return True

    def remove_member(self, user_id: str) -> bool:
        before = len(self.members)
        self.members = [member for member in self.members if member.user_id != user_id]
        removed = len(self.members) != before
        if removed:
            self.touch()
        return removed

    # === Queue ===

    def contains_video(self, video_id: str) -> bool:
        """Check whether a video is queued or currently playing."""
        if self.current is not None and self.current.video_id == video_id:
            return True
        return any(item.video_id == video_id for item in self.queue)

    def queued_count_for(self, user_id: str) -> int:
        return FairnessPolicy.queued_count(self.queue, user_id)

    def enqueue(
        self,
        *,
        video_id: str,
        submitted_by: str,
        title: str | None = None,
        url: str | None = None,
        note: str | None = None,
        submitter_name: str | None = None,
        max_queue_size: int | None = None,
    ) -> tuple[QueueItem, int]:
        """Insert a new item at its fairness position.

        Returns:
            The created item and its zero-based queue position.

        Raises:
            DuplicateItemError: If the video is queued or currently playing.
            CapacityExceededError: If the queue already holds ``max_queue_size`` items.
        """
        if self.contains_video(video_id):
            raise DuplicateItemError(video_id)
        if max_queue_size is not None and self.queue_length >= max_queue_size:
            raise CapacityExceededError("Queue", max_queue_size)

        item = QueueItem(
            video_id=video_id,
            submitted_by=submitted_by,
            title=title,
            url=url,
            note=note,
            submitter_name=submitter_name,
            sequence=self.next_sequence,
            fairness_rank=self.queued_count_for(submitted_by),
        )
        position = FairnessPolicy.insertion_index(self.queue, item)
        self.queue.insert(position, item)
        self.next_sequence += 1
        self.touch()
        return item, position

    def peek(self) -> QueueItem | None:
        """Look at the next item without removing it."""
        return self.queue[0] if self.queue else None

    def advance(self) -> QueueItem | None:
        """Remove and return the front item, or None if the queue is empty."""
        if not self.queue:
            return None
        item = self.queue.pop(0)
        self.touch()
        return item

    def remove_item(self, video_id: str) -> QueueItem | None:
        """Remove a waiting item; the remaining items keep their order."""
        for index, item in enumerate(self.queue):
            if item.video_id == video_id:
                self.touch()
                return self.queue.pop(index)
        return None

    # === Playback ===

    def retire_current(self) -> QueueItem | None:
        """Move the current item onto history and open a new playback epoch."""
        previous = self.current
        if previous is not None:
            self.history.append(previous)
            self.current = None
        self.playback_epoch += 1
        self.touch()
        return previous

    def start_playing(self, item: QueueItem) -> None:
        self.current = item
        self.touch()

    def record_superseded(self, item: QueueItem) -> None:
        """Keep an item that reached the device after a newer transition."""
        self.history.append(item)
        self.touch()

    def set_cast_target(self, device_id: str | None) -> None:
        self.cast_target = device_id
        self.touch()
