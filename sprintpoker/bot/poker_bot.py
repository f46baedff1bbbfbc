"""
Poker Bot - The chat-facing entry point.

Usage:
    bot = PokerBot(transport, tasks)
    handled = await bot.handle_message(message)

`poker @person...` creates a new session in a fresh room. Every other
command is routed to the session owning the message's context; messages
no session claims are left unhandled.
"""

from __future__ import annotations

from ..engine_core.effects import Effect, EffectType
from ..errors import PersonNotFoundError
from ..notifications.formatting import format_list
from ..observability.logging import get_logger
from ..providers.tasks import TaskProvider
from ..providers.transport import ChatTransport, IncomingMessage, Person
from ..session.commands import SessionCommand
from ..session.manager import Rejection, RejectionReason, Session, SessionRegistry
from .commands import POKER, extract_mentions, parse_command

logger = get_logger(__name__)

ROOM_TITLE = "Sprint planning poker"


class PokerBot:
    """Parses chat messages and drives the session registry."""

    def __init__(
        self,
        transport: ChatTransport,
        tasks: TaskProvider,
        registry: SessionRegistry | None = None,
        bot_handle: str = "bot",
    ):
        self.transport = transport
        self.tasks = tasks
        self.registry = registry if registry is not None else SessionRegistry(transport, tasks)
        self.bot_handle = bot_handle

    async def handle_message(self, message: IncomingMessage) -> bool:
        """Handle one incoming message. Returns False when it was not for the bot."""
        if message.author.handle == self.bot_handle:
            return False

        parsed = parse_command(message.content, self.bot_handle, private=message.private)
        if parsed is None:
            return False

        if parsed.name == POKER:
            if message.private:
                return False
            await self.create_game(message, parsed.argument)
            return True

        command = SessionCommand.from_message(parsed.command_name, message, parsed.argument)
        try:
            outcome = await self.registry.route_command(command)
        except Exception as e:
            logger.exception("command_failed", command=parsed.name, error=str(e))
            await self.transport.reply(message, "Sorry, something went wrong handling that command.")
            return True

        return outcome is not None and outcome.handled

    async def create_game(self, message: IncomingMessage, argument: str = "") -> Session | None:
        """
        Create a session with the mentioned people.

        No room is created and nobody is invited unless every handle
        resolves and nobody is already committed to another session.
        """
        moderator = message.author
        handles = [h for h in message.mentions if h.lstrip("@").lower() != self.bot_handle.lower()]
        if not handles:
            handles = extract_mentions(argument, exclude=(self.bot_handle,))

        participants: list[Person] = []
        for handle in handles:
            try:
                participants.append(await self.transport.get_person_by_handle(handle))
            except PersonNotFoundError:
                await self.transport.reply(message, f"Sorry, I couldn't find anyone called {handle}.")
                return None

        reservation = await self.registry.reserve(moderator, participants)
        if isinstance(reservation, Rejection):
            await self._reject(message, reservation)
            return None

        try:
            room = await self.transport.create_room(ROOM_TITLE)
            for person in reservation.people:
                await self.transport.add_person_to_room(person.id, room.id)
        except Exception:
            await self.registry.release(reservation)
            raise

        result = await self.registry.create_session(moderator, participants, room.id, reservation=reservation)
        if isinstance(result, Rejection):
            await self._reject(message, result)
            return None

        await result.worker.announce([Effect.of(EffectType.WELCOME)])
        return result

    async def _reject(self, message: IncomingMessage, rejection: Rejection) -> None:
        if rejection.reason == RejectionReason.PARTICIPANT_BUSY:
            names = [p.first_name for p in rejection.unavailable]
            verb = "is" if len(names) == 1 else "are"
            await self.transport.reply(
                message,
                f"Sorry, {format_list(names)} {verb} already in another sprint planning.",
            )
            await self.registry.notify_conflicts(rejection, message.author)
        else:
            await self.transport.reply(message, rejection.message)
