"""
Command visibility rules.

Which commands a sender may issue depends on the session status, the
sender's role and whether the message was sent in the session room or
privately. Commands outside these rules are never dispatched; they are
ignored without a reply.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from ..engine_core.state import SessionState, SessionStatus
from .commands import CommandContext, CommandName


class Role(Enum):
    MODERATOR = "moderator"
    PLAYER = "player"
    OUTSIDER = "outsider"


ANY_CONTEXT = frozenset(CommandContext)
NON_TERMINAL = frozenset({
    SessionStatus.WAITING,
    SessionStatus.READY,
    SessionStatus.ROUND,
    SessionStatus.MODERATION,
})
ADJUDICATION = frozenset({SessionStatus.ROUND, SessionStatus.MODERATION})


@dataclass(frozen=True)
class Rule:
    statuses: frozenset[SessionStatus]
    roles: frozenset[Role]
    contexts: frozenset[CommandContext] = ANY_CONTEXT


MODERATOR_ONLY = frozenset({Role.MODERATOR})
PLAYERS = frozenset({Role.MODERATOR, Role.PLAYER})

RULES: dict[CommandName, Rule] = {
    CommandName.PLAN: Rule(frozenset({SessionStatus.WAITING}), MODERATOR_ONLY),
    CommandName.START: Rule(frozenset({SessionStatus.READY}), MODERATOR_ONLY),
    CommandName.SKIP: Rule(ADJUDICATION, MODERATOR_ONLY),
    CommandName.PASS: Rule(ADJUDICATION, MODERATOR_ONLY),
    CommandName.ESTIMATE: Rule(ADJUDICATION, MODERATOR_ONLY),
    CommandName.VOTE: Rule(frozenset({SessionStatus.ROUND}), PLAYERS),
    CommandName.STATUS: Rule(frozenset(SessionStatus), PLAYERS),
    CommandName.EXIT: Rule(NON_TERMINAL, PLAYERS),
}


def role_of(state: SessionState, person_id: str) -> Role:
    if state.is_moderator(person_id):
        return Role.MODERATOR
    if state.has_player(person_id):
        return Role.PLAYER
    return Role.OUTSIDER


def authorize(
    status: SessionStatus,
    role: Role,
    context: CommandContext,
    command: CommandName,
) -> bool:
    """True when the command is visible to the sender in this state."""
    rule = RULES.get(command)
    if rule is None:
        return False
    return status in rule.statuses and role in rule.roles and context in rule.contexts


def allowed_commands(state: SessionState, person_id: str, context: CommandContext) -> list[CommandName]:
    """Commands the person may issue right now, in declaration order."""
    role = role_of(state, person_id)
    return [name for name in RULES if authorize(state.status, role, context, name)]
