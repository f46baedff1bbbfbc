"""
In-memory providers.

Used by the HTTP adapter, the CLI demo and the tests:
- InMemoryChatTransport records every outbound message
- InMemoryTaskProvider serves tasklists from a dict or a JSON file

Nothing here is persisted.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import itertools
import json

from ..engine_core.state import TaskItem, TaskList
from .tasks import TaskListRef, TaskProvider, TaskProviderError, split_hours
from .transport import ChatTransport, IncomingMessage, Person, PersonNotFoundError, Room


@dataclass(frozen=True)
class SentMessage:
    """An outbound message captured by the in-memory transport."""
    kind: str  # "room" or "person"
    target: str  # room id or person id
    content: str


class InMemoryChatTransport(ChatTransport):
    """
    Chat transport that keeps everything in memory.

    Sends to people listed in `unreachable` raise ConnectionError,
    which lets callers exercise partial delivery failures.
    """

    def __init__(self, bot: Person | None = None, people: list[Person] | None = None):
        self.bot = bot or Person(id="bot", first_name="Bot", handle="bot")
        self.people: dict[str, Person] = {}
        self.rooms: dict[str, Room] = {}
        self.members: dict[str, list[str]] = {}
        self.sent: list[SentMessage] = []
        self.unreachable: set[str] = set()
        self._room_ids = itertools.count(1)

        for person in people or []:
            self.add_person(person)

    def add_person(self, person: Person) -> Person:
        self.people[person.handle or person.id] = person
        return person

    async def get_current_user(self) -> Person:
        return self.bot

    async def create_room(self, title: str) -> Room:
        room = Room(id=f"room-{next(self._room_ids)}", title=title)
        self.rooms[room.id] = room
        self.members[room.id] = [self.bot.id]
        return room

    async def add_person_to_room(self, person_id: str, room_id: str) -> None:
        members = self.members.setdefault(room_id, [])
        if person_id not in members:
            members.append(person_id)

    async def get_person_by_handle(self, handle: str) -> Person:
        person = self.people.get(handle.lstrip("@"))
        if person is None:
            raise PersonNotFoundError(handle)
        return person

    async def send_message_to_room(self, room_id: str, content: str) -> None:
        self.sent.append(SentMessage(kind="room", target=room_id, content=content))

    async def send_message_to_person(self, person: Person, content: str) -> None:
        if person.id in self.unreachable:
            raise ConnectionError(f"{person.id} is unreachable")
        self.sent.append(SentMessage(kind="person", target=person.id, content=content))

    async def reply(self, message: IncomingMessage, content: str) -> None:
        if message.private or not message.room_id:
            await self.send_message_to_person(message.author, content)
        else:
            await self.send_message_to_room(message.room_id, content)

    # =========================================================================
    # Inspection helpers
    # =========================================================================

    def room_messages(self, room_id: str) -> list[str]:
        return [m.content for m in self.sent if m.kind == "room" and m.target == room_id]

    def person_messages(self, person_id: str) -> list[str]:
        return [m.content for m in self.sent if m.kind == "person" and m.target == person_id]

    def find_room(self, title: str) -> list[Room]:
        return [room for room in self.rooms.values() if room.title == title]


@dataclass
class InMemoryTaskProvider(TaskProvider):
    """
    Task provider backed by a dict of tasklists.

    Written estimates are recorded in `estimates` keyed by item id, and
    as tracker-style hour/minute submissions in `submissions`.
    """
    tasklists: dict[str, TaskList] = field(default_factory=dict)
    items: dict[str, list[TaskItem]] = field(default_factory=dict)
    estimates: dict[str, float] = field(default_factory=dict)
    submissions: list[dict[str, Any]] = field(default_factory=list)
    fail_writes: bool = False

    def add_tasklist(self, tasklist: TaskList, items: list[TaskItem]) -> TaskList:
        self.tasklists[tasklist.id] = tasklist
        self.items[tasklist.id] = list(items)
        return tasklist

    async def resolve_list(self, ref: TaskListRef) -> TaskList:
        tasklist = self.tasklists.get(ref.id)
        if tasklist is None:
            raise TaskProviderError(f"Tasklist {ref.id} not found")
        return tasklist

    async def list_items(self, tasklist: TaskList) -> list[TaskItem]:
        if tasklist.id not in self.items:
            raise TaskProviderError(f"Tasklist {tasklist.id} not found")
        return list(self.items[tasklist.id])

    async def write_estimate(self, tasklist: TaskList, item_id: str, hours: float) -> None:
        if self.fail_writes:
            raise TaskProviderError(f"Could not update task {item_id}")
        whole, minutes = split_hours(hours)
        self.estimates[item_id] = hours
        self.submissions.append({
            "projectId": tasklist.project_id,
            "taskId": item_id,
            "taskEstimateHours": whole,
            "taskEstimateMins": minutes,
        })

    @classmethod
    def from_dict(cls, data: dict[str, Any], installation: str = "") -> InMemoryTaskProvider:
        """
        Build a provider from a plain structure:

            {"tasklists": [{"id": "1", "title": "...", "tasks": [{"id": "10", "title": "..."}]}]}
        """
        provider = cls()
        for entry in data.get("tasklists", []):
            list_id = str(entry["id"])
            tasklist = TaskList(
                id=list_id,
                title=entry.get("title", f"Tasklist {list_id}"),
                link=entry.get("link", f"{installation}/#/tasklists/{list_id}"),
                project_id=entry.get("project_id"),
            )
            tasks = [
                TaskItem(
                    id=str(task["id"]),
                    title=task.get("title", ""),
                    link=task.get("link", f"{installation}/#/tasks/{task['id']}"),
                    description=task.get("description"),
                    parent_title=task.get("parent_title"),
                    estimated_minutes=task.get("estimated_minutes"),
                    predecessor_count=task.get("predecessor_count"),
                )
                for task in entry.get("tasks", [])
            ]
            provider.add_tasklist(tasklist, tasks)
        return provider

    @classmethod
    def from_file(cls, path: str, installation: str = "") -> InMemoryTaskProvider:
        with open(path) as f:
            return cls.from_dict(json.load(f), installation=installation)
