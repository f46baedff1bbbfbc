"""
Chat Transport - Interface to the chat service the bot runs on.

The bot only needs a handful of primitives: who am I, create a room,
invite people, look people up by handle, and send messages to rooms,
people, or as a reply. Concrete transports implement this interface.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..engine_core.state import Player
from ..errors import PersonNotFoundError

# People on the chat service are the same identities as session players.
Person = Player

__all__ = ["ChatTransport", "IncomingMessage", "Person", "PersonNotFoundError", "Room"]


@dataclass(frozen=True)
class Room:
    """A chat room."""
    id: str
    title: str


@dataclass(frozen=True)
class IncomingMessage:
    """
    A message received by the bot.

    `private` messages were sent to the bot directly; room messages
    carry the room id. `mentions` lists the handles mentioned in the
    content, in order.
    """
    id: str
    author: Person
    content: str
    room_id: str | None = None
    private: bool = False
    mentions: tuple[str, ...] = field(default_factory=tuple)


class ChatTransport(ABC):
    """Abstract chat service."""

    @abstractmethod
    async def get_current_user(self) -> Person:
        """Identity of the bot itself."""

    @abstractmethod
    async def create_room(self, title: str) -> Room:
        ...

    @abstractmethod
    async def add_person_to_room(self, person_id: str, room_id: str) -> None:
        ...

    @abstractmethod
    async def get_person_by_handle(self, handle: str) -> Person:
        """Resolve a handle. Raises PersonNotFoundError."""

    @abstractmethod
    async def send_message_to_room(self, room_id: str, content: str) -> None:
        ...

    @abstractmethod
    async def send_message_to_person(self, person: Person, content: str) -> None:
        ...

    @abstractmethod
    async def reply(self, message: IncomingMessage, content: str) -> None:
        """Reply in the context the message came from."""

    def format_mention(self, person: Person) -> str:
        return f"@{person.handle or person.id}"
