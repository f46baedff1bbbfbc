"""
Tests for the session registry.

Tests:
- Session creation and double-booking rejection
- Roster reservations
- Routing by room and by player
- Removal and player release
"""

import pytest

from ..engine_core.state import SessionStatus
from ..session import CommandName, RejectionReason, Session
from ..session.manager import Rejection, Reservation
from .conftest import command


class TestCreateSession:
    """Tests for session creation."""

    @pytest.mark.asyncio
    async def test_create(self, registry, alice, bob, carol):
        session = await registry.create_session(alice, [bob, carol], "room-1")

        assert isinstance(session, Session)
        assert session.state.status == SessionStatus.WAITING
        assert [p.id for p in session.players] == ["bob", "carol", "alice"]
        assert session.worker is not None
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, registry, alice, bob, carol, dave):
        first = await registry.create_session(alice, [bob], "room-1")
        second = await registry.create_session(carol, [dave], "room-2")

        assert first.session_id != second.session_id

    @pytest.mark.asyncio
    async def test_duplicates_collapse(self, registry, alice, bob):
        session = await registry.create_session(alice, [bob, bob, alice], "room-1")

        assert [p.id for p in session.players] == ["bob", "alice"]

    @pytest.mark.asyncio
    async def test_no_participants(self, registry, alice):
        result = await registry.create_session(alice, [alice], "room-1")

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INSUFFICIENT_PARTICIPANTS
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_busy_participant(self, registry, alice, bob, carol, dave):
        await registry.create_session(alice, [bob], "room-1")

        result = await registry.create_session(carol, [bob, dave], "room-2")

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.PARTICIPANT_BUSY
        assert [p.id for p in result.unavailable] == ["bob"]
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_busy_moderator(self, registry, alice, bob, carol):
        await registry.create_session(alice, [bob], "room-1")

        result = await registry.check_availability(alice, [carol])

        assert result.reason == RejectionReason.PARTICIPANT_BUSY
        assert [p.id for p in result.unavailable] == ["alice"]

    @pytest.mark.asyncio
    async def test_notify_conflicts(self, registry, transport, alice, bob, carol):
        await registry.create_session(alice, [bob], "room-1")
        rejection = await registry.check_availability(carol, [bob])

        await registry.notify_conflicts(rejection, carol)

        warnings = transport.room_messages("room-1")
        assert len(warnings) == 1
        assert "Carol tried to start another sprint planning with Bob" in warnings[0]


class TestReservation:
    """Rosters held while a chat room is set up."""

    @pytest.mark.asyncio
    async def test_reserved_people_are_busy(self, registry, alice, bob, carol, dave):
        reservation = await registry.reserve(alice, [bob])

        assert isinstance(reservation, Reservation)
        assert len(registry) == 0
        assert await registry.find_by_player("bob") is None

        rejection = await registry.reserve(carol, [bob, dave])
        assert rejection.reason == RejectionReason.PARTICIPANT_BUSY
        assert [p.id for p in rejection.unavailable] == ["bob"]
        assert (await registry.check_availability(dave, [alice])).reason == RejectionReason.PARTICIPANT_BUSY

    @pytest.mark.asyncio
    async def test_create_session_consumes_reservation(self, registry, alice, bob):
        reservation = await registry.reserve(alice, [bob, bob])

        session = await registry.create_session(alice, [bob], "room-1", reservation=reservation)

        assert isinstance(session, Session)
        assert session.session_id == reservation.session_id
        assert [p.id for p in reservation.people] == ["alice", "bob"]
        assert await registry.find_by_player("bob") is session

    @pytest.mark.asyncio
    async def test_release_frees_people(self, registry, alice, bob, carol):
        reservation = await registry.reserve(alice, [bob])

        await registry.release(reservation)
        await registry.release(reservation)

        assert await registry.check_availability(carol, [alice, bob]) is None

    @pytest.mark.asyncio
    async def test_conflict_with_reservation_is_not_announced(self, registry, transport, alice, bob, carol):
        await registry.reserve(alice, [bob])
        rejection = await registry.reserve(carol, [bob])

        await registry.notify_conflicts(rejection, carol)

        assert transport.sent == []


class TestRouting:
    """Tests for command routing."""

    @pytest.mark.asyncio
    async def test_find_by_room_and_player(self, registry, alice, bob):
        session = await registry.create_session(alice, [bob], "room-1")

        assert await registry.find_by_room("room-1") is session
        assert await registry.find_by_player("bob") is session
        assert await registry.find_by_room("room-2") is None
        assert await registry.find_by_player("dave") is None

    @pytest.mark.asyncio
    async def test_room_command_routes_by_room(self, registry, alice, bob):
        session = await registry.create_session(alice, [bob], "room-1")

        assert await registry.find_for_command(command(CommandName.START, alice, room_id="room-1")) is session
        assert await registry.find_for_command(command(CommandName.START, alice, room_id="elsewhere")) is None

    @pytest.mark.asyncio
    async def test_private_command_routes_by_player(self, registry, alice, bob, dave):
        session = await registry.create_session(alice, [bob], "room-1")

        assert await registry.find_for_command(command(CommandName.VOTE, bob, "5", private=True)) is session
        assert await registry.find_for_command(command(CommandName.VOTE, dave, "5", private=True)) is None

    @pytest.mark.asyncio
    async def test_unrouted_command(self, registry, dave):
        assert await registry.route_command(command(CommandName.STATUS, dave, private=True)) is None


class TestRemoval:
    """Tests for removal."""

    @pytest.mark.asyncio
    async def test_remove_frees_players(self, registry, alice, bob, carol):
        session = await registry.create_session(alice, [bob], "room-1")

        assert await registry.remove(session.session_id)
        assert await registry.remove(session.session_id) is False
        assert len(registry) == 0
        assert await registry.find_by_room("room-1") is None
        assert await registry.check_availability(carol, [alice, bob]) is None

    @pytest.mark.asyncio
    async def test_player_leave_frees_only_that_player(self, registry, alice, bob, carol, dave):
        session = await registry.create_session(alice, [bob, carol], "room-1")

        await registry.on_player_leave(session.session_id, bob)

        assert await registry.find_by_player("bob") is None
        assert await registry.find_by_player("carol") is session
        assert await registry.check_availability(dave, [bob]) is None

    @pytest.mark.asyncio
    async def test_list_active_sessions(self, registry, alice, bob, carol, dave):
        first = await registry.create_session(alice, [bob], "room-1")
        second = await registry.create_session(carol, [dave], "room-2")

        sessions = await registry.list_active_sessions()

        assert {s.session_id for s in sessions} == {first.session_id, second.session_id}
