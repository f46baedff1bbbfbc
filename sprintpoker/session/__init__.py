"""
Session Module - Manages live estimation sessions.

A session represents one sprint-planning run:
- Created when a room member starts a game with some participants
- Holds the current immutable state snapshot
- Processes commands one at a time through its worker
- Removed when it completes or the moderator leaves

Sessions are EPHEMERAL:
- No persistence to database
- Nothing survives a process restart
"""

from .commands import CommandContext, CommandName, CommandOutcome, SessionCommand
from .authorization import Role, authorize, allowed_commands, role_of
from .executor import EffectExecutor, describe_status
from .worker import SessionWorker
from .manager import Rejection, RejectionReason, Reservation, Session, SessionRegistry

__all__ = [
    "CommandContext",
    "CommandName",
    "CommandOutcome",
    "SessionCommand",
    "Role",
    "authorize",
    "allowed_commands",
    "role_of",
    "EffectExecutor",
    "describe_status",
    "SessionWorker",
    "Rejection",
    "Reservation",
    "RejectionReason",
    "Session",
    "SessionRegistry",
]
