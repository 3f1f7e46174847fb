"""
Shared Domain Kernel

Contains types, messages and exceptions shared across all bounded contexts.
"""

from karaoke_queue.domain.shared.exceptions import (
    CapacityExceededError,
    CastTransportError,
    DomainError,
    DuplicateItemError,
    InvalidLinkError,
    LinkResolutionError,
    NoCastDeviceError,
    NotMemberError,
    NotOwnerError,
    PersistenceError,
    SessionNotFoundError,
)

__all__ = [
    "DomainError",
    "SessionNotFoundError",
    "NotOwnerError",
    "NotMemberError",
    "DuplicateItemError",
    "InvalidLinkError",
    "LinkResolutionError",
    "NoCastDeviceError",
    "CastTransportError",
    "PersistenceError",
    "CapacityExceededError",
]
