"""
Pytest fixtures for sprintpoker tests.
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.reducer import apply_action
from ..engine_core.state import Player, SessionState, TaskItem, TaskList
from ..providers.memory import InMemoryChatTransport, InMemoryTaskProvider
from ..providers.transport import IncomingMessage
from ..session import SessionCommand, SessionRegistry

TASKLIST_URL = "https://acme.teamwork.com/index.cfm#tasklists/457357"


@pytest.fixture
def alice() -> Player:
    return Player(id="alice", first_name="Alice", handle="alice")


@pytest.fixture
def bob() -> Player:
    return Player(id="bob", first_name="Bob", handle="bob")


@pytest.fixture
def carol() -> Player:
    return Player(id="carol", first_name="Carol", handle="carol")


@pytest.fixture
def dave() -> Player:
    return Player(id="dave", first_name="Dave", handle="dave")


@pytest.fixture
def tasklist() -> TaskList:
    return TaskList(
        id="457357",
        title="Sprint 12",
        link="https://acme.teamwork.com/#/tasklists/457357",
        project_id="99",
    )


@pytest.fixture
def tasks() -> list[TaskItem]:
    return [
        TaskItem(id="t1", title="Login form", link="https://acme.teamwork.com/#/tasks/t1"),
        TaskItem(
            id="t2",
            title="Password reset",
            link="https://acme.teamwork.com/#/tasks/t2",
            description="Send a reset link\nExpire after an hour",
            predecessor_count=2,
        ),
        TaskItem(id="t3", title="Audit log", link="https://acme.teamwork.com/#/tasks/t3"),
    ]


@pytest.fixture
def task_provider(tasklist, tasks) -> InMemoryTaskProvider:
    provider = InMemoryTaskProvider()
    provider.add_tasklist(tasklist, tasks)
    return provider


@pytest.fixture
def transport(alice, bob, carol, dave) -> InMemoryChatTransport:
    return InMemoryChatTransport(people=[alice, bob, carol, dave])


@pytest.fixture
def registry(transport, task_provider) -> SessionRegistry:
    return SessionRegistry(transport, task_provider)


@pytest.fixture
def waiting_state(alice, bob, carol) -> SessionState:
    """Three players (moderator last), no tasklist yet."""
    return SessionState.create("s1", "room-1", alice, [bob, carol], created_at=1000.0)


@pytest.fixture
def ready_state(waiting_state, tasklist, tasks) -> SessionState:
    result = apply_action(waiting_state, Action.plan(tasklist, tasks, timestamp=1010.0))
    assert result.success
    return result.new_state


@pytest.fixture
def round_state(ready_state) -> SessionState:
    """First round open, no votes."""
    result = apply_action(ready_state, Action.start())
    assert result.success
    return result.new_state


def play(state: SessionState, *actions: Action) -> SessionState:
    """Apply actions in order, asserting each succeeds."""
    for action in actions:
        result = apply_action(state, action)
        assert result.success, result.error
        state = result.new_state
    return state


def command(name, sender, argument="", private=False, room_id="room-1"):
    """A session command as the bot would build it from a chat message."""
    message = IncomingMessage(
        id=f"{sender.id}-{name.value}",
        author=sender,
        content=argument,
        room_id=None if private else room_id,
        private=private,
    )
    return SessionCommand.from_message(name, message, argument)
