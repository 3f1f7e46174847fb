"""SQLite repository implementations."""

from karaoke_queue.infrastructure.persistence.repositories.session_repository import (
    SQLiteSessionRepository,
)

__all__ = [
    "SQLiteSessionRepository",
]
