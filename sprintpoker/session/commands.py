"""
Session commands - What a chat message asks a session to do.

A SessionCommand is the routed, not-yet-validated form of a message.
The session worker authorizes it, resolves anything external and
turns it into a reducer Action.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ..engine_core.effects import Effect
from ..engine_core.state import Player
from ..providers.transport import IncomingMessage


class CommandName(Enum):
    """Commands a session understands."""
    PLAN = "plan"
    START = "start"
    VOTE = "vote"
    SKIP = "skip"
    PASS = "pass"
    ESTIMATE = "estimate"
    STATUS = "status"
    EXIT = "exit"


class CommandContext(Enum):
    """Where a command was issued."""
    ROOM = "room"
    PRIVATE = "private"


@dataclass(frozen=True)
class SessionCommand:
    """A command addressed to one session."""
    name: CommandName
    sender: Player
    argument: str = ""
    private: bool = False
    message: IncomingMessage | None = None

    @property
    def context(self) -> CommandContext:
        return CommandContext.PRIVATE if self.private else CommandContext.ROOM

    @property
    def room_id(self) -> str | None:
        return self.message.room_id if self.message else None

    @classmethod
    def from_message(cls, name: CommandName, message: IncomingMessage, argument: str = "") -> SessionCommand:
        return cls(
            name=name,
            sender=message.author,
            argument=argument,
            private=message.private,
            message=message,
        )


@dataclass
class CommandOutcome:
    """
    What happened to a command.

    `handled` is False when the command was not visible to the sender
    in the current state; such commands fall through silently.
    """
    handled: bool
    accepted: bool = False
    error: str | None = None
    error_code: str | None = None
    effects: list[Effect] = field(default_factory=list)

    @classmethod
    def ignored(cls) -> CommandOutcome:
        return cls(handled=False)

    @classmethod
    def rejected(cls, error: str, error_code: str | None = None) -> CommandOutcome:
        return cls(handled=True, accepted=False, error=error, error_code=error_code)

    @classmethod
    def applied(cls, effects: list[Effect] | None = None) -> CommandOutcome:
        return cls(handled=True, accepted=True, effects=effects or [])
