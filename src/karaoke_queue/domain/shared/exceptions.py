"""Base exception classes for domain-level errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..session.entities import QueueItem


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class SessionNotFoundError(DomainError):
    """Raised when a session code is not assigned to any active session."""

    def __init__(self, session_code: str, message: str | None = None) -> None:
        msg = message or f"Session '{session_code}' not found"
        super().__init__(msg, code="SESSION_NOT_FOUND")
        self.session_code = session_code


class NotOwnerError(DomainError):
    """Raised when a non-owner attempts an owner-only operation."""

    def __init__(self, session_code: str, user_id: str, operation: str) -> None:
        super().__init__(
            f"Only the session owner can {operation}",
            code="NOT_OWNER",
        )
        self.session_code = session_code
        self.user_id = user_id
        self.operation = operation


class NotMemberError(DomainError):
    """Raised when a user acts on a session they have not joined."""

    def __init__(self, session_code: str, user_id: str) -> None:
        super().__init__(
            f"User '{user_id}' is not a member of session '{session_code}'",
            code="NOT_MEMBER",
        )
        self.session_code = session_code
        self.user_id = user_id


class DuplicateItemError(DomainError):
    """Raised when a video is already queued or currently playing."""

    def __init__(self, video_id: str, message: str | None = None) -> None:
        msg = message or f"Video '{video_id}' is already in the queue or currently playing"
        super().__init__(msg, code="DUPLICATE_ITEM")
        self.video_id = video_id


class InvalidLinkError(DomainError):
    """Raised by the link resolver when a URL cannot be turned into a video id."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Not a valid video link: {url}"
        super().__init__(msg, code="INVALID_LINK")
        self.url = url


class LinkResolutionError(DomainError):
    """Raised when the link resolver could not answer in time."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Timed out resolving {url}"
        super().__init__(msg, code="LINK_RESOLUTION_FAILED")
        self.url = url


class NoCastDeviceError(DomainError):
    """Raised when no cast device is configured and none can be discovered."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No cast devices available", code="NO_CAST_DEVICE")


class UnknownDeviceError(DomainError):
    """Raised when a requested cast device is not among the discovered ones."""

    def __init__(self, device_name: str, available: list[str] | None = None) -> None:
        super().__init__(f"No cast device named '{device_name}'", code="UNKNOWN_DEVICE")
        self.device_name = device_name
        self.available = available or []


class CastTransportError(DomainError):
    """Raised when the cast transport fails or times out.

    When raised from ``next`` the popped item is attached so the caller can
    tell the user which video was dropped.
    """

    def __init__(
        self,
        device_id: str | None,
        message: str | None = None,
        item: QueueItem | None = None,
    ) -> None:
        msg = message or f"Cast device '{device_id}' failed"
        super().__init__(msg, code="CAST_TRANSPORT_ERROR")
        self.device_id = device_id
        self.item = item


class PersistenceError(DomainError):
    """Raised when the durable store cannot be read or written."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Persistence failure during {operation}"
        super().__init__(msg, code="PERSISTENCE_ERROR")
        self.operation = operation


class CapacityExceededError(DomainError):
    """Raised when a configured session or queue limit is reached."""

    def __init__(self, resource: str, limit: int, message: str | None = None) -> None:
        msg = message or f"{resource} is full (max {limit})"
        super().__init__(msg, code="CAPACITY_EXCEEDED")
        self.resource = resource
        self.limit = limit
