"""Tests for SessionRegistry: create, join, leave, end and lookups."""

from unittest.mock import patch

import pytest

from karaoke_queue.application.services.session_registry import SessionRegistry
from karaoke_queue.config.settings import SessionSettings
from karaoke_queue.domain.session.value_objects import CastState, SessionCode
from karaoke_queue.domain.shared.exceptions import (
    CapacityExceededError,
    NotMemberError,
    NotOwnerError,
    SessionNotFoundError,
)


class TestCreateSession:
    @pytest.mark.asyncio
    async def test_owner_is_first_member(self, registry):
        ref = await registry.create_session("owner", "Olivia")

        assert ref.owner_id == "owner"
        assert ref.member_ids == ["owner"]
        assert ref.persisted is True
        assert len(ref.code) == 6

        session = registry.get_session(ref.code)
        assert session.members[0].display_name == "Olivia"
        assert session.state is CastState.IDLE

    @pytest.mark.asyncio
    async def test_codes_are_unique(self, registry):
        codes = {(await registry.create_session(f"user{i}")).code for i in range(20)}
        assert len(codes) == 20

    @pytest.mark.asyncio
    async def test_collision_draws_again(self, registry):
        first = await registry.create_session("a")
        with patch.object(
            SessionCode,
            "generate",
            side_effect=[SessionCode(first.code), SessionCode("FRESH1")],
        ):
            second = await registry.create_session("b")

        assert second.code == "FRESH1"

    @pytest.mark.asyncio
    async def test_exhausted_codes_raise(self, registry):
        first = await registry.create_session("a")
        with (
            patch.object(SessionCode, "generate", return_value=SessionCode(first.code)),
            pytest.raises(CapacityExceededError),
        ):
            await registry.create_session("b")

    @pytest.mark.asyncio
    async def test_session_limit(self, session_store):
        registry = SessionRegistry(
            session_store=session_store, settings=SessionSettings(max_sessions=1)
        )
        await registry.create_session("a")
        with pytest.raises(CapacityExceededError):
            await registry.create_session("b")

    @pytest.mark.asyncio
    async def test_creating_again_leaves_previous_session(self, registry):
        first = await registry.create_session("owner")
        second = await registry.create_session("owner")

        assert registry.session_for_user("owner") == second.code
        assert not registry.get_session(first.code).is_member("owner")


class TestJoinLeave:
    @pytest.mark.asyncio
    async def test_join_adds_member(self, registry):
        ref = await registry.create_session("owner")

        joined = await registry.join_session(ref.code.lower(), "u1", "Alice")

        assert joined.joined is True
        assert set(joined.member_ids) == {"owner", "u1"}
        assert registry.session_for_user("u1") == ref.code

    @pytest.mark.asyncio
    async def test_join_is_idempotent(self, registry):
        ref = await registry.create_session("owner")
        await registry.join_session(ref.code, "u1")

        again = await registry.join_session(ref.code, "u1")

        assert again.joined is False
        assert again.member_ids.count("u1") == 1

    @pytest.mark.asyncio
    async def test_join_unknown_code(self, registry):
        with pytest.raises(SessionNotFoundError):
            await registry.join_session("ZZZZZZ", "u1")

    @pytest.mark.asyncio
    async def test_join_malformed_code(self, registry):
        with pytest.raises(SessionNotFoundError):
            await registry.join_session("??", "u1")

    @pytest.mark.asyncio
    async def test_joining_another_session_leaves_the_first(self, registry):
        a = await registry.create_session("owner-a")
        b = await registry.create_session("owner-b")
        await registry.join_session(a.code, "u1")

        await registry.join_session(b.code, "u1")

        assert not registry.get_session(a.code).is_member("u1")
        assert registry.session_for_user("u1") == b.code

    @pytest.mark.asyncio
    async def test_leave(self, registry):
        ref = await registry.create_session("owner")
        await registry.join_session(ref.code, "u1")

        assert await registry.leave_session(ref.code, "u1") is True
        assert registry.session_for_user("u1") is None

    @pytest.mark.asyncio
    async def test_leave_when_not_member(self, registry):
        ref = await registry.create_session("owner")
        with pytest.raises(NotMemberError):
            await registry.leave_session(ref.code, "stranger")

    @pytest.mark.asyncio
    async def test_owner_leaving_keeps_session(self, registry):
        ref = await registry.create_session("owner")
        await registry.join_session(ref.code, "u1")

        await registry.leave_session(ref.code, "owner")

        session = registry.get_session(ref.code)
        assert session.owner_id == "owner"
        assert session.member_ids == {"u1"}


class TestEndSessionAndInfo:
    @pytest.mark.asyncio
    async def test_owner_can_end(self, registry, session_repository):
        ref = await registry.create_session("owner")

        assert await registry.end_session(ref.code, "owner") is True

        with pytest.raises(SessionNotFoundError):
            registry.get_session(ref.code)
        assert await session_repository.get(ref.code) is None

    @pytest.mark.asyncio
    async def test_member_cannot_end(self, registry):
        ref = await registry.create_session("owner")
        await registry.join_session(ref.code, "u1")
        with pytest.raises(NotOwnerError):
            await registry.end_session(ref.code, "u1")

    @pytest.mark.asyncio
    async def test_session_info(self, registry):
        ref = await registry.create_session("owner", "Olivia")
        await registry.join_session(ref.code, "u1", "Alice")

        info = registry.session_info(ref.code)

        assert info.code == ref.code
        assert [m.label for m in info.members] == ["Olivia", "Alice"]
        assert info.queue_length == 0
        assert info.cast_target is None
        assert registry.uptime_seconds(ref.code) >= 0
