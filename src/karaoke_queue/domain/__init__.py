# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- session/: Karaoke session, queue items and fairness ordering
"""

from karaoke_queue.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
