"""
Session Domain Repository Interface

Abstract base class defining the contract for session persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from karaoke_queue.domain.session.entities import KaraokeSession


class SessionRepository(ABC):
    """Abstract repository for karaoke sessions.

    The key is the session code and the value is the full session record
    (members, queue, current, history, cast target). ``save`` must replace
    the record atomically: a concurrent reader sees either the old or the
    new record, never a mix.

    Implementations raise ``PersistenceError`` when the store fails.
    """

    @abstractmethod
    async def get(self, code: str) -> KaraokeSession | None:
        """Retrieve a session by code.

        Args:
            code: The session code.

        Returns:
            The session if found, None otherwise.
        """
        ...

    @abstractmethod
    async def save(self, session: KaraokeSession) -> None:
        """Insert or replace a session.

        Args:
            session: The session to save.
        """
        ...

    @abstractmethod
    async def delete(self, code: str) -> bool:
        """Delete a session by code.

        Args:
            code: The session code.

        Returns:
            True if the session was deleted, False if it didn't exist.
        """
        ...

    @abstractmethod
    async def exists(self, code: str) -> bool:
        """Check if a session exists.

        Args:
            code: The session code.

        Returns:
            True if session exists.
        """
        ...

    @abstractmethod
    async def get_all(self) -> list[KaraokeSession]:
        """Load every stored session, used to rebuild state at startup.

        Returns:
            List of sessions.
        """
        ...

    @abstractmethod
    async def list_codes(self) -> list[str]:
        """Get the codes of all stored sessions."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Get the total number of stored sessions."""
        ...
