"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite database, session repository, cleanup job)
- Links (yt-dlp backed link resolver)
- Cast (configured-device cast transport)
"""

from karaoke_queue.infrastructure.persistence.database import Database

__all__ = [
    "Database",
]
