"""
Engine Core - Deterministic session state management.

The engine is the runtime that:
1. Holds an immutable SessionState snapshot
2. Parses vote and estimate input
3. Applies actions via the reducer
4. Emits ordered effects for the notification layer
5. Aggregates votes into a PERT suggestion
"""

from .state import (
    COFFEE,
    INFINITY,
    Player,
    Round,
    RoundQueue,
    SessionState,
    SessionStatus,
    TaskItem,
    TaskList,
    Vote,
    VoteRecord,
)
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .effects import Effect, EffectType
from .reducer import Reducer, apply_action
from .aggregation import VoteTally, tally, tally_votes, pert
from .grammar import parse_vote, parse_estimate, is_vote

__all__ = [
    "COFFEE",
    "INFINITY",
    "Player",
    "Round",
    "RoundQueue",
    "SessionState",
    "SessionStatus",
    "TaskItem",
    "TaskList",
    "Vote",
    "VoteRecord",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "Effect",
    "EffectType",
    "Reducer",
    "apply_action",
    "VoteTally",
    "tally",
    "tally_votes",
    "pert",
    "parse_vote",
    "parse_estimate",
    "is_vote",
]
