"""Immutable value objects for the session bounded context."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass
from enum import Enum
from typing import Final

from ..shared.messages import ErrorMessages

SESSION_CODE_ALPHABET: Final[str] = string.ascii_uppercase + string.digits
SESSION_CODE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Z0-9]{4,16}$")


@dataclass(frozen=True)
class SessionCode:
    """Short human-shareable session identifier."""

    value: str

    def __post_init__(self) -> None:
        if not SESSION_CODE_PATTERN.match(self.value):
            raise ValueError(ErrorMessages.INVALID_SESSION_CODE.format(code=self.value))

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls, length: int = 6) -> SessionCode:
        """Draw a random code; 36**6 codes keeps accidental collisions negligible."""
        return cls("".join(secrets.choice(SESSION_CODE_ALPHABET) for _ in range(length)))

    @classmethod
    def normalize(cls, raw: str) -> SessionCode:
        """Parse user input such as ``" abc123 "`` into a code."""
        return cls(raw.strip().upper())


class CastState(Enum):
    """Playback state of a session's cast target.

    - IDLE: no current item (never advanced, queue exhausted, or cast failed)
    - PLAYING: current item set, assumed playing on the cast target
    """

    IDLE = "idle"
    PLAYING = "playing"

    @property
    def is_playing(self) -> bool:
        return self == CastState.PLAYING


class ItemSlot(Enum):
    """Where a persisted item sits within its session."""

    QUEUE = "queue"
    CURRENT = "current"
    HISTORY = "history"
