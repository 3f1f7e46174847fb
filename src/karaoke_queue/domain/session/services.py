"""
Session Domain Services

Queue ordering rules that don't naturally belong to a single entity.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import QueueItem


class FairnessPolicy:
    """Round-robin style ordering for a shared queue.

    The queue is kept sorted by ``(fairness_rank, sequence)``. An item's
    ``fairness_rank`` is the number of items its submitter already had
    waiting when it was inserted, so a user's second pending item always
    sorts after every other user's first pending item. Equal ranks fall back
    to submission order.
    """

    @staticmethod
    def sort_key(item: QueueItem) -> tuple[int, int]:
        return (item.fairness_rank, item.sequence)

    @staticmethod
    def queued_count(queue: Sequence[QueueItem], user_id: str) -> int:
        """Count the user's waiting items, always from the live queue."""
        return sum(1 for item in queue if item.submitted_by == user_id)

    @classmethod
    def insertion_index(cls, queue: Sequence[QueueItem], item: QueueItem) -> int:
        """Position that keeps ``queue`` sorted once ``item`` is inserted.

        Args:
            queue: The current queue, already in fairness order.
            item: The new item with its rank and sequence assigned.

        Returns:
            Index to insert at; items with an equal key stay ahead of it.
        """
        return bisect.bisect_right(queue, cls.sort_key(item), key=cls.sort_key)

    @classmethod
    def is_ordered(cls, queue: Sequence[QueueItem]) -> bool:
        keys = [cls.sort_key(item) for item in queue]
        return keys == sorted(keys)
