"""
Unit Tests for the Session Domain

Tests for:
- SessionCode generation and normalization
- QueueItem / Member value semantics
- KaraokeSession membership, enqueue, advance and playback transitions
- FairnessPolicy ordering
"""

import pytest
from pydantic import ValidationError

from karaoke_queue.domain.session.entities import KaraokeSession, Member, QueueItem
from karaoke_queue.domain.session.services import FairnessPolicy
from karaoke_queue.domain.session.value_objects import CastState, SessionCode
from karaoke_queue.domain.shared.exceptions import CapacityExceededError, DuplicateItemError


def _session() -> KaraokeSession:
    session = KaraokeSession(code="ABC123", owner_id="owner")
    session.add_member("owner", "Owner")
    session.add_member("u1", "Alice")
    session.add_member("u2", "Bob")
    return session


def _queued_ids(session: KaraokeSession) -> list[str]:
    return [item.video_id for item in session.queue]


# =============================================================================
# SessionCode
# =============================================================================


class TestSessionCode:
    def test_generate_has_requested_length(self):
        code = SessionCode.generate(8)
        assert len(code.value) == 8
        assert code.value.isalnum()
        assert code.value.upper() == code.value

    def test_generate_default_length(self):
        assert len(str(SessionCode.generate())) == 6

    def test_normalize_strips_and_uppercases(self):
        assert SessionCode.normalize("  abc123 ").value == "ABC123"

    @pytest.mark.parametrize("raw", ["", "ab", "abc-123", "ABCDEFGHIJKLMNOPQ"])
    def test_invalid_codes_rejected(self, raw):
        with pytest.raises(ValueError):
            SessionCode.normalize(raw)


# =============================================================================
# Entities
# =============================================================================


class TestQueueItem:
    def test_is_frozen(self):
        item = QueueItem(video_id="abc", submitted_by="u1")
        with pytest.raises(ValidationError):
            item.title = "changed"

    def test_display_fallbacks(self):
        item = QueueItem(video_id="abc", submitted_by="u1", url="https://youtu.be/abc")
        assert item.display_title == "https://youtu.be/abc"
        assert item.display_submitter == "u1"

        named = QueueItem(video_id="abc", submitted_by="u1", title="Song", submitter_name="Alice")
        assert named.display_title == "Song"
        assert named.display_submitter == "Alice"

    def test_rejects_bad_video_id(self):
        with pytest.raises(ValidationError):
            QueueItem(video_id="not a video id", submitted_by="u1")

    def test_rejects_naive_datetime(self):
        from datetime import datetime

        with pytest.raises(ValidationError):
            QueueItem(video_id="abc", submitted_by="u1", submitted_at=datetime(2024, 1, 1))


class TestMember:
    def test_label_defaults_to_anonymous(self):
        assert Member(user_id="u1").label == "Anonymous"
        assert Member(user_id="u1", display_name="Alice").label == "Alice"


class TestKaraokeSessionMembership:
    def test_add_member_is_idempotent(self):
        session = KaraokeSession(code="ABC123", owner_id="owner")
        assert session.add_member("u1") is True
        assert session.add_member("u1") is False
        assert session.member_ids == {"u1"}

    def test_remove_member(self):
        session = _session()
        assert session.remove_member("u1") is True
        assert session.remove_member("u1") is False
        assert not session.is_member("u1")

    def test_owner_is_fixed_even_after_leaving(self):
        session = _session()
        session.remove_member("owner")
        assert session.is_owner("owner")
        assert not session.is_member("owner")


class TestKaraokeSessionQueue:
    def test_enqueue_stamps_sequence(self):
        session = _session()
        first, _ = session.enqueue(video_id="a", submitted_by="u1")
        second, _ = session.enqueue(video_id="b", submitted_by="u2")
        assert (first.sequence, second.sequence) == (0, 1)
        assert session.next_sequence == 2

    def test_duplicate_in_queue_rejected(self):
        session = _session()
        session.enqueue(video_id="a", submitted_by="u1")
        with pytest.raises(DuplicateItemError):
            session.enqueue(video_id="a", submitted_by="u2")
        assert session.queue_length == 1

    def test_duplicate_of_current_rejected(self):
        session = _session()
        session.start_playing(QueueItem(video_id="a", submitted_by="u1"))
        with pytest.raises(DuplicateItemError):
            session.enqueue(video_id="a", submitted_by="u2")

    def test_history_does_not_block_resubmission(self):
        session = _session()
        session.start_playing(QueueItem(video_id="a", submitted_by="u1"))
        session.retire_current()
        item, _ = session.enqueue(video_id="a", submitted_by="u1")
        assert item.video_id == "a"

    def test_capacity_limit(self):
        session = _session()
        session.enqueue(video_id="a", submitted_by="u1", max_queue_size=2)
        session.enqueue(video_id="b", submitted_by="u1", max_queue_size=2)
        with pytest.raises(CapacityExceededError):
            session.enqueue(video_id="c", submitted_by="u2", max_queue_size=2)

    def test_advance_and_peek(self):
        session = _session()
        assert session.peek() is None
        assert session.advance() is None

        session.enqueue(video_id="a", submitted_by="u1")
        assert session.peek().video_id == "a"
        assert session.advance().video_id == "a"
        assert session.queue == []
        assert session.current is None
        assert session.history == []

    def test_remove_item_keeps_order(self):
        session = _session()
        for vid, user in [("a", "u1"), ("b", "u2"), ("c", "u1")]:
            session.enqueue(video_id=vid, submitted_by=user)
        removed = session.remove_item("b")
        assert removed.video_id == "b"
        assert _queued_ids(session) == ["a", "c"]
        assert session.remove_item("zzz") is None


class TestKaraokeSessionPlayback:
    def test_state_follows_current(self):
        session = _session()
        assert session.state is CastState.IDLE
        session.start_playing(QueueItem(video_id="a", submitted_by="u1"))
        assert session.state is CastState.PLAYING
        assert session.state.is_playing

    def test_retire_current_moves_to_history_and_bumps_epoch(self):
        session = _session()
        item = QueueItem(video_id="a", submitted_by="u1")
        session.start_playing(item)

        previous = session.retire_current()

        assert previous == item
        assert session.current is None
        assert session.history == [item]
        assert session.playback_epoch == 1

    def test_retire_without_current_still_bumps_epoch(self):
        session = _session()
        assert session.retire_current() is None
        assert session.history == []
        assert session.playback_epoch == 1


# =============================================================================
# FairnessPolicy
# =============================================================================


class TestFairnessPolicy:
    def test_second_item_waits_for_everyone_elses_first(self):
        session = _session()
        session.enqueue(video_id="a1", submitted_by="u1")
        session.enqueue(video_id="a2", submitted_by="u1")
        session.enqueue(video_id="b1", submitted_by="u2")

        assert _queued_ids(session) == ["a1", "b1", "a2"]

    def test_round_robin_across_three_users(self):
        session = _session()
        for vid in ["a1", "a2", "a3"]:
            session.enqueue(video_id=vid, submitted_by="u1")
        for vid in ["b1", "b2"]:
            session.enqueue(video_id=vid, submitted_by="u2")
        session.enqueue(video_id="c1", submitted_by="owner")

        assert _queued_ids(session) == ["a1", "b1", "c1", "a2", "b2", "a3"]
        assert FairnessPolicy.is_ordered(session.queue)

    def test_rank_counts_live_queue_only(self):
        session = _session()
        session.enqueue(video_id="a1", submitted_by="u1")
        session.advance()

        item, position = session.enqueue(video_id="a2", submitted_by="u1")

        assert item.fairness_rank == 0
        assert position == 0

    def test_ties_fall_back_to_submission_order(self):
        session = _session()
        session.enqueue(video_id="b1", submitted_by="u2")
        session.enqueue(video_id="a1", submitted_by="u1")

        assert _queued_ids(session) == ["b1", "a1"]

    def test_insertion_position_reported(self):
        session = _session()
        session.enqueue(video_id="a1", submitted_by="u1")
        session.enqueue(video_id="a2", submitted_by="u1")

        _, position = session.enqueue(video_id="b1", submitted_by="u2")

        assert position == 1

    def test_queued_count(self):
        session = _session()
        session.enqueue(video_id="a1", submitted_by="u1")
        session.enqueue(video_id="b1", submitted_by="u2")
        assert FairnessPolicy.queued_count(session.queue, "u1") == 1
        assert session.queued_count_for("nobody") == 0
