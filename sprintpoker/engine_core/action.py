"""
Action System - Actions, payloads, and results.

Actions represent the commands a session accepts once they have been
authorized and any external lookups have completed:
1. Planning (tasklist resolved, items fetched)
2. Round control (start, skip, pass, final estimate)
3. Voting
4. Roster changes (a player leaving)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time

from .effects import Effect
from .state import Player, TaskItem, TaskList, VoteValue


class ActionType(Enum):
    """Types of actions accepted by the reducer."""
    PLAN = "plan"
    START = "start"
    VOTE = "vote"
    SKIP = "skip"
    PASS = "pass"
    FINAL_VOTE = "final_vote"
    REMOVE_PLAYER = "remove_player"


class ErrorCode:
    """Machine-readable reducer failure codes."""
    INVALID_STATE = "INVALID_STATE"
    LAST_ROUND = "LAST_ROUND"
    NO_ROUND = "NO_ROUND"
    NOT_A_PLAYER = "NOT_A_PLAYER"
    EMPTY_TASKLIST = "EMPTY_TASKLIST"


@dataclass
class ActionPayload:
    """
    Payload for an action.

    Different action types use different fields; validation
    happens in the reducer.
    """
    player: Player | None = None

    # For planning
    tasklist: TaskList | None = None
    tasks: list[TaskItem] | None = None

    # For voting
    vote: VoteValue | None = None
    direct: bool = False

    # For the moderator's final estimate
    estimate: float | None = None


@dataclass
class Action:
    """
    A complete action to be applied to a session state.

    The timestamp is captured when the action is built so that the
    reducer itself stays deterministic.
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def plan(cls, tasklist: TaskList, tasks: list[TaskItem], timestamp: float | None = None) -> Action:
        """Factory for planning a resolved tasklist."""
        action = cls(
            action_type=ActionType.PLAN,
            payload=ActionPayload(tasklist=tasklist, tasks=list(tasks)),
        )
        if timestamp is not None:
            action.timestamp = timestamp
        return action

    @classmethod
    def start(cls) -> Action:
        return cls(action_type=ActionType.START, payload=ActionPayload())

    @classmethod
    def vote(
        cls,
        player: Player,
        value: VoteValue,
        direct: bool = False,
        timestamp: float | None = None,
    ) -> Action:
        """Factory for a vote; `direct` marks a vote sent in private."""
        action = cls(
            action_type=ActionType.VOTE,
            payload=ActionPayload(player=player, vote=value, direct=direct),
        )
        if timestamp is not None:
            action.timestamp = timestamp
        return action

    @classmethod
    def skip(cls) -> Action:
        return cls(action_type=ActionType.SKIP, payload=ActionPayload())

    @classmethod
    def pass_round(cls) -> Action:
        return cls(action_type=ActionType.PASS, payload=ActionPayload())

    @classmethod
    def final_vote(cls, estimate: float, timestamp: float | None = None) -> Action:
        """Factory for the moderator's final estimate of the current round."""
        action = cls(
            action_type=ActionType.FINAL_VOTE,
            payload=ActionPayload(estimate=estimate),
        )
        if timestamp is not None:
            action.timestamp = timestamp
        return action

    @classmethod
    def remove_player(cls, player: Player) -> Action:
        return cls(action_type=ActionType.REMOVE_PLAYER, payload=ActionPayload(player=player))


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Ordered effects to execute (if succeeded)
    - Error message and code (if failed)
    """
    success: bool
    new_state: Any | None = None  # SessionState
    effects: list[Effect] = field(default_factory=list)
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, effects: list[Effect] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, effects=effects or [])
