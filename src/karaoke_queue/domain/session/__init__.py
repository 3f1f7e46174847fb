"""
Session Bounded Context

Sessions, their members and the fairness-ordered queue of submitted videos.
"""

from karaoke_queue.domain.session.entities import KaraokeSession, Member, QueueItem
from karaoke_queue.domain.session.repository import SessionRepository
from karaoke_queue.domain.session.services import FairnessPolicy
from karaoke_queue.domain.session.value_objects import CastState, ItemSlot, SessionCode

__all__ = [
    "KaraokeSession",
    "Member",
    "QueueItem",
    "SessionRepository",
    "FairnessPolicy",
    "CastState",
    "ItemSlot",
    "SessionCode",
]
