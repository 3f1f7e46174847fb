"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the project is defined here once,
so models can simply annotate their fields::

    from karaoke_queue.domain.shared.types import UserIdStr, NonEmptyStr

    class MyModel(BaseModel):
        user_id: UserIdStr
        name: NonEmptyStr
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

NonNegativeFloat = Annotated[float, Field(ge=0.0)]
"""Float >= 0.0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

UserIdStr = Annotated[str, Field(min_length=1, max_length=128)]
"""Opaque user identifier supplied by the chat transport."""

SessionCodeStr = Annotated[str, Field(pattern=r"^[A-Z0-9]{4,16}$")]
"""Uppercase alphanumeric session code."""

VideoIdStr = Annotated[str, Field(pattern=r"^[A-Za-z0-9_-]{1,64}$")]
"""Canonical video identifier resolved from a link."""

DeviceIdStr = Annotated[str, Field(min_length=1, max_length=256)]
"""Cast device identifier (usually its friendly name)."""

TitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Video title: 1-500 characters."""

NOTE_MAX_LENGTH = 500

NoteStr = Annotated[str, Field(min_length=1, max_length=NOTE_MAX_LENGTH)]
"""Free-text note attached to a submission."""


# ── Settings-specific constraints ──────────────────────────────────

BusyTimeoutMs = Annotated[int, Field(ge=1000, le=30000)]
"""Database busy timeout in milliseconds: 1 000 … 30 000."""

ConnectionTimeoutS = Annotated[int, Field(ge=1, le=60)]
"""Database connection timeout in seconds: 1 … 60."""

SessionCodeLength = Annotated[int, Field(ge=6, le=16)]
"""Generated session code length: 6 … 16."""

MaxQueueSize = Annotated[int, Field(gt=0, le=1000)]
"""Maximum queue size: 1 … 1 000."""


# ── Datetime constraints ────────────────────────────────────────────


def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
