"""
Integration tests - End-to-end chat flows.

Tests the complete flow:
1. A room member starts a game with some participants
2. The moderator plans a tasklist and starts
3. Players vote in the room or privately
4. The moderator estimates each round until the planning completes
"""

import itertools

import pytest

from ..bot import PokerBot, ROOM_TITLE
from ..engine_core.state import Player, SessionStatus
from ..providers.transport import IncomingMessage
from .conftest import TASKLIST_URL


class Chat:
    """Drives the bot the way a chat service would."""

    def __init__(self, bot):
        self.bot = bot
        self._ids = itertools.count(1)

    async def say(self, author, content, room_id):
        return await self.bot.handle_message(IncomingMessage(
            id=f"m{next(self._ids)}",
            author=author,
            content=content,
            room_id=room_id,
        ))

    async def whisper(self, author, content):
        return await self.bot.handle_message(IncomingMessage(
            id=f"m{next(self._ids)}",
            author=author,
            content=content,
            private=True,
        ))


@pytest.fixture
def erin(transport) -> Player:
    return transport.add_person(Player(id="erin", first_name="Erin", handle="erin"))


@pytest.fixture
def frank(transport) -> Player:
    return transport.add_person(Player(id="frank", first_name="Frank", handle="frank"))


@pytest.fixture
def bot(transport, task_provider, registry) -> PokerBot:
    return PokerBot(transport, task_provider, registry=registry)


@pytest.fixture
def chat(bot) -> Chat:
    return Chat(bot)


class TestFullPlanning:
    """Scenarios A and B: a five-person planning."""

    @pytest.mark.asyncio
    async def test_create_and_plan(self, chat, registry, transport, alice, bob, carol, dave, erin):
        await chat.say(alice, "@bot poker @bob @carol @dave @erin", "general")

        session = await registry.find_by_player("alice")
        assert session is not None
        assert transport.rooms[session.room].title == ROOM_TITLE
        assert set(transport.members[session.room]) == {"bot", "alice", "bob", "carol", "dave", "erin"}
        assert len(session.players) == 5
        assert session.state.status == SessionStatus.WAITING

        await chat.say(alice, f"@bot plan {TASKLIST_URL}", session.room)

        assert session.state.status == SessionStatus.READY
        assert [r.task.id for r in session.state.rounds.pending] == ["t1", "t2", "t3"]

    @pytest.mark.asyncio
    async def test_all_vote_then_estimate(self, chat, registry, task_provider, alice, bob, carol, dave, erin):
        await chat.say(alice, "@bot poker @bob @carol @dave @erin", "general")
        session = await registry.find_by_player("alice")
        room = session.room
        await chat.say(alice, f"@bot plan {TASKLIST_URL}", room)
        await chat.say(alice, "@bot start", room)
        assert session.state.status == SessionStatus.ROUND

        for player in (bob, carol, dave, erin):
            assert await chat.whisper(player, "10")
        assert session.state.status == SessionStatus.ROUND
        await chat.say(alice, "@bot vote 10", room)

        assert session.state.status == SessionStatus.MODERATION

        await chat.say(alice, "@bot estimate 10", room)

        state = session.state
        assert state.status == SessionStatus.ROUND
        assert state.rounds.completed[0].task.id == "t1"
        assert state.rounds.completed[0].final_vote == 10
        assert state.current_round.task.id == "t2"
        assert task_provider.estimates == {"t1": 10.0}

    @pytest.mark.asyncio
    async def test_play_to_completion(self, chat, registry, transport, alice, bob):
        await chat.say(alice, "@bot poker @bob", "general")
        session = await registry.find_by_player("alice")
        room = session.room

        await chat.say(alice, f"@bot plan {TASKLIST_URL}", room)
        await chat.say(alice, "@bot start", room)
        await chat.whisper(bob, "3")
        await chat.whisper(alice, "5")
        await chat.whisper(alice, "estimate 4")
        await chat.say(alice, "@bot pass", room)
        await chat.say(alice, "@bot skip", room)
        await chat.whisper(bob, "coffee")
        await chat.say(alice, "@bot estimate 1.5", room)

        assert session.state.status == SessionStatus.COMPLETE
        assert len(registry) == 0

        summary = transport.room_messages(room)[-1]
        assert "Sprint planning complete" in summary
        assert "5 hours and 30 minutes (5.5)" in summary
        assert "Skipped tasks:" in summary
        assert "Audit log" in summary


class TestMessages:
    """What people see along the way."""

    @pytest.mark.asyncio
    async def test_welcome(self, chat, registry, transport, alice, bob):
        await chat.say(alice, "@bot poker @bob", "general")
        session = await registry.find_by_player("alice")

        assert "you are the moderator" in transport.person_messages("alice")[0]
        assert "@alice is the moderator" in transport.person_messages("bob")[0]
        assert "@alice is the moderator" in transport.room_messages(session.room)[0]

    @pytest.mark.asyncio
    async def test_private_vote_is_secret(self, chat, registry, transport, alice, bob, carol):
        await chat.say(alice, "@bot poker @bob @carol", "general")
        session = await registry.find_by_player("alice")
        await chat.say(alice, f"@bot plan {TASKLIST_URL}", session.room)
        await chat.say(alice, "@bot start", session.room)

        await chat.whisper(bob, "8")

        assert transport.room_messages(session.room)[-1] == ":ballot_box_with_check: Bob has voted."

    @pytest.mark.asyncio
    async def test_room_vote_is_public(self, chat, registry, transport, alice, bob, carol):
        await chat.say(alice, "@bot poker @bob @carol", "general")
        session = await registry.find_by_player("alice")
        await chat.say(alice, f"@bot plan {TASKLIST_URL}", session.room)
        await chat.say(alice, "@bot start", session.room)

        await chat.say(bob, "@bot vote 8", session.room)

        assert transport.room_messages(session.room)[-1] == (
            ":ballot_box_with_check: Bob has voted 8 hours (8)."
        )

    @pytest.mark.asyncio
    async def test_private_revote(self, chat, registry, transport, alice, bob, carol):
        await chat.say(alice, "@bot poker @bob @carol", "general")
        session = await registry.find_by_player("alice")
        await chat.say(alice, f"@bot plan {TASKLIST_URL}", session.room)
        await chat.say(alice, "@bot start", session.room)

        await chat.whisper(bob, "8")
        await chat.whisper(bob, "2")

        assert "Thanks, your vote has been updated to 2 hours (2)." in transport.person_messages("bob")
        assert transport.room_messages(session.room)[-1] == (
            ":ballot_box_with_check: Bob has updated their vote."
        )

    @pytest.mark.asyncio
    async def test_all_voted_announces_suggestion(self, chat, registry, transport, alice, bob, carol):
        await chat.say(alice, "@bot poker @bob @carol", "general")
        session = await registry.find_by_player("alice")
        await chat.say(alice, f"@bot plan {TASKLIST_URL}", session.room)
        await chat.say(alice, "@bot start", session.room)

        await chat.whisper(bob, "5")
        await chat.whisper(carol, "coffee")
        await chat.whisper(alice, "20")

        room = transport.room_messages(session.room)
        announcement = next(m for m in room if "everyone has voted" in m)
        assert "Suggested estimate: 12 hours and 30 minutes (12.5)" in announcement
        assert any("Carol feels it's time for a coffee break" in m for m in room)
        assert transport.person_messages("alice")[-1].startswith("Okay moderator")


class TestIsolation:
    """Scenario C: two sessions, no shared players."""

    @pytest.mark.asyncio
    async def test_commands_affect_one_session(self, chat, registry, alice, bob, carol, dave):
        await chat.say(alice, "@bot poker @bob", "general")
        await chat.say(carol, "@bot poker @dave", "general")
        first = await registry.find_by_player("alice")
        second = await registry.find_by_player("carol")
        assert first is not second

        await chat.say(alice, f"@bot plan {TASKLIST_URL}", first.room)
        await chat.say(alice, "@bot start", first.room)
        await chat.whisper(bob, "3")

        assert first.state.status == SessionStatus.ROUND
        assert second.state.status == SessionStatus.WAITING
        assert second.state.rounds.total == 0

        # Alice is not in the second session, her commands there are ignored
        handled = await chat.say(alice, f"@bot plan {TASKLIST_URL}", second.room)
        assert not handled
        assert second.state.status == SessionStatus.WAITING


class TestDoubleBooking:
    """Scenario D: participants already playing elsewhere."""

    @pytest.mark.asyncio
    async def test_busy_participant_rejected(self, chat, registry, transport, alice, bob, carol, dave):
        await chat.say(alice, "@bot poker @bob", "general")
        existing = await registry.find_by_player("alice")
        rooms_before = len(transport.rooms)

        await chat.say(carol, "@bot poker @bob @dave", "general")

        assert len(registry) == 1
        assert len(transport.rooms) == rooms_before
        assert await registry.find_by_player("carol") is None
        assert transport.room_messages("general")[-1] == (
            "Sorry, Bob is already in another sprint planning."
        )
        assert "Carol tried to start another sprint planning with Bob" in (
            transport.room_messages(existing.room)[-1]
        )
        assert existing.state.status == SessionStatus.WAITING
