"""
Task Provider - Interface to the work-item tracker.

The session needs three things from the tracker: resolve a tasklist
reference, list its items in tracker order, and write a final
estimate back to an item.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
import re

from ..engine_core.state import TaskItem, TaskList
from ..errors import TaskProviderError

__all__ = [
    "TaskListRef",
    "TaskProvider",
    "TaskProviderError",
    "parse_tasklist_reference",
    "split_hours",
    "EXAMPLE_TASKLIST",
]


TASKLIST_EXPR = re.compile(
    r"(?:https?://)?([a-zA-Z\-_0-9]+)\.teamwork\.com/(?:index\.cfm)?#?/?tasklists/(\d+)"
)

EXAMPLE_TASKLIST = "https://1486461376533.teamwork.com/index.cfm#tasklists/457357"


@dataclass(frozen=True)
class TaskListRef:
    """A parsed reference to a tasklist."""
    installation: str
    id: str


def parse_tasklist_reference(text: str) -> TaskListRef | None:
    """Parse a tasklist URL. Returns None when the text is not recognised."""
    match = TASKLIST_EXPR.search(text or "")
    if not match:
        return None
    return TaskListRef(installation=match.group(1), id=match.group(2))


def split_hours(hours: float) -> tuple[int, int]:
    """Split fractional hours into whole hours and minutes."""
    whole = math.floor(hours)
    minutes = math.floor((hours - whole) * 60)
    return whole, minutes


class TaskProvider(ABC):
    """Abstract work-item tracker."""

    @abstractmethod
    async def resolve_list(self, ref: TaskListRef) -> TaskList:
        """Resolve a reference. Raises TaskProviderError."""

    @abstractmethod
    async def list_items(self, tasklist: TaskList) -> list[TaskItem]:
        """Items of the list in tracker order. Raises TaskProviderError."""

    @abstractmethod
    async def write_estimate(self, tasklist: TaskList, item_id: str, hours: float) -> None:
        """Persist a final estimate. Raises TaskProviderError."""
