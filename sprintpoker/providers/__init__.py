"""
Providers - External collaborators of the bot.

- Chat transport: rooms, people, message delivery
- Task provider: tasklists, items, estimate write-back
"""

from .transport import ChatTransport, IncomingMessage, Person, PersonNotFoundError, Room
from .tasks import (
    EXAMPLE_TASKLIST,
    TaskListRef,
    TaskProvider,
    TaskProviderError,
    parse_tasklist_reference,
    split_hours,
)
from .memory import InMemoryChatTransport, InMemoryTaskProvider, SentMessage

__all__ = [
    "ChatTransport",
    "IncomingMessage",
    "Person",
    "PersonNotFoundError",
    "Room",
    "EXAMPLE_TASKLIST",
    "TaskListRef",
    "TaskProvider",
    "TaskProviderError",
    "parse_tasklist_reference",
    "split_hours",
    "InMemoryChatTransport",
    "InMemoryTaskProvider",
    "SentMessage",
]
