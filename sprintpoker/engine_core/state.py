"""
Session State - Immutable snapshots of one estimation session.

Design principles:
- Immutable: every transition returns a new snapshot, nothing is mutated in place
- Self-contained: a snapshot carries the roster, the round queue and the tasklist
- Referenced identities: players are referenced by id, never owned
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union


COFFEE = "coffee"
INFINITY = "infinity"
SENTINEL_VOTES = frozenset({COFFEE, INFINITY})

VoteValue = Union[float, str]


class SessionStatus(Enum):
    """Lifecycle of an estimation session."""
    WAITING = "waiting"  # Waiting for the moderator to pick a tasklist
    READY = "ready"  # Tasklist planned, waiting for the moderator to start
    ROUND = "round"  # Voting on the current round
    MODERATION = "moderation"  # Everyone voted, waiting for the moderator
    COMPLETE = "complete"  # All rounds resolved
    CANCELLED = "cancelled"  # Moderator left

    @property
    def is_terminal(self) -> bool:
        return self in {SessionStatus.COMPLETE, SessionStatus.CANCELLED}


@dataclass(frozen=True)
class Player:
    """
    A chat identity taking part in a session.

    Equality is by id only so that a refreshed display name
    does not make the same person look like a new player.
    """
    id: str
    first_name: str
    handle: str | None = None

    def __eq__(self, other):
        if not isinstance(other, Player):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class TaskList:
    """A list of work items in the task provider."""
    id: str
    title: str
    link: str
    project_id: str | None = None


@dataclass(frozen=True)
class TaskItem:
    """A single work item to be estimated."""
    id: str
    title: str
    link: str
    description: str | None = None
    parent_title: str | None = None
    estimated_minutes: int | None = None
    predecessor_count: int | None = None

    @property
    def is_skippable(self) -> bool:
        """Tasks that already carry an estimate or have subtasks may be skipped."""
        return bool(self.estimated_minutes) or bool(self.predecessor_count)


@dataclass(frozen=True)
class VoteRecord:
    """A superseded vote value."""
    value: VoteValue
    timestamp: float


@dataclass(frozen=True)
class Vote:
    """
    A person's live vote in a round.

    Re-voting supersedes the value and pushes the previous
    value/timestamp onto the history.
    """
    person: str
    value: VoteValue
    timestamp: float
    history: tuple[VoteRecord, ...] = ()

    @property
    def is_numeric(self) -> bool:
        return not isinstance(self.value, str)

    def supersede(self, value: VoteValue, timestamp: float) -> Vote:
        """Return a new vote with the current value moved into history."""
        return Vote(
            person=self.person,
            value=value,
            timestamp=timestamp,
            history=self.history + (VoteRecord(value=self.value, timestamp=self.timestamp),),
        )


@dataclass(frozen=True)
class Round:
    """The unit of estimation for one task."""
    id: str
    task: TaskItem
    votes: tuple[Vote, ...] = ()
    final_vote: float | None = None

    @property
    def vote_count(self) -> int:
        return len(self.votes)

    def get_vote(self, person_id: str) -> Vote | None:
        for vote in self.votes:
            if vote.person == person_id:
                return vote
        return None

    def with_vote(self, vote: Vote) -> Round:
        """Return new round with the person's vote upserted."""
        votes = tuple(v for v in self.votes if v.person != vote.person)
        return replace(self, votes=(vote,) + votes)

    def cleared(self) -> Round:
        """Return new round with no votes."""
        return replace(self, votes=())

    def resolved(self, final_vote: float) -> Round:
        return replace(self, final_vote=final_vote)


@dataclass(frozen=True)
class RoundQueue:
    """
    Three disjoint sequences of rounds.

    pending[0] is the current round. A round is in exactly one
    of the sequences at any time.
    """
    pending: tuple[Round, ...] = ()
    completed: tuple[Round, ...] = ()
    skipped: tuple[Round, ...] = ()

    @property
    def current(self) -> Round | None:
        return self.pending[0] if self.pending else None

    @property
    def total(self) -> int:
        return len(self.pending) + len(self.completed) + len(self.skipped)

    @classmethod
    def from_tasks(cls, tasks: list[TaskItem]) -> RoundQueue:
        return cls(pending=tuple(Round(id=task.id, task=task) for task in tasks))

    def with_current(self, round_: Round) -> RoundQueue:
        """Return new queue with the current round replaced."""
        return replace(self, pending=(round_,) + self.pending[1:])

    def complete_current(self, final_vote: float) -> RoundQueue:
        current = self.pending[0]
        return RoundQueue(
            pending=self.pending[1:],
            completed=self.completed + (current.resolved(final_vote),),
            skipped=self.skipped,
        )

    def skip_current(self) -> RoundQueue:
        return RoundQueue(
            pending=self.pending[1:],
            completed=self.completed,
            skipped=self.skipped + (self.pending[0],),
        )

    def rotate_current(self) -> RoundQueue:
        """Move the current round to the back of the queue with its votes cleared."""
        return replace(self, pending=self.pending[1:] + (self.pending[0].cleared(),))


@dataclass(frozen=True)
class SessionState:
    """
    Complete session state at a point in time.

    This is the canonical state the reducer operates on.
    All state changes go through the reducer.
    """
    session_id: str
    room: str
    moderator: Player

    # Moderator is always part of the roster
    players: tuple[Player, ...] = ()
    status: SessionStatus = SessionStatus.WAITING
    rounds: RoundQueue = field(default_factory=RoundQueue)
    tasklist: TaskList | None = None

    # Timestamps
    created_at: float = 0.0
    started_at: float | None = None
    finished_at: float | None = None

    @classmethod
    def create(
        cls,
        session_id: str,
        room: str,
        moderator: Player,
        participants: list[Player],
        created_at: float = 0.0,
    ) -> SessionState:
        """Build the initial waiting state for a new session."""
        players = tuple(p for p in participants if p != moderator) + (moderator,)
        return cls(
            session_id=session_id,
            room=room,
            moderator=moderator,
            players=players,
            created_at=created_at,
        )

    @property
    def current_round(self) -> Round | None:
        return self.rounds.current

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_moderator(self, person_id: str) -> bool:
        return self.moderator.id == person_id

    def get_player(self, person_id: str) -> Player | None:
        for player in self.players:
            if player.id == person_id:
                return player
        return None

    def has_player(self, person_id: str) -> bool:
        return self.get_player(person_id) is not None

    def _copy_with(self, **kwargs) -> SessionState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
