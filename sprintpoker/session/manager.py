"""
Session Registry - Creates, routes to and removes live sessions.

LIFECYCLE:
1. A room member asks for a game with some participants
2. The registry checks nobody is already committed to a live session
   and reserves the roster while the chat room is set up
3. A session is created (in-memory only) with its own worker
4. Commands from the session room, or private commands from one of its
   players, are routed to that session's worker
5. The session completes or is cancelled -> removed from the registry

CONCURRENCY:
- The session table and its room/player indexes are the only state
  shared between sessions; every read and write takes the registry lock
- Commands are submitted to a session's worker outside the lock, so a
  slow session never blocks routing for the others

No persistence - sessions are in-memory only.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import asyncio
import time
import uuid

from ..engine_core.effects import Effect, EffectType
from ..engine_core.reducer import Reducer
from ..engine_core.state import Player, SessionState
from ..notifications.dispatcher import NotificationDispatcher
from ..observability.logging import get_logger
from ..providers.tasks import TaskProvider
from ..providers.transport import ChatTransport
from .commands import CommandOutcome, SessionCommand
from .executor import EffectExecutor
from .worker import SessionWorker

logger = get_logger(__name__)


@dataclass
class Session:
    """
    A live estimation session.

    `state` is the latest immutable snapshot; only the session's
    worker replaces it.
    """
    session_id: str
    room: str
    state: SessionState
    created_at: float
    worker: SessionWorker | None = None

    def is_active(self) -> bool:
        return not self.state.is_terminal

    @property
    def players(self) -> tuple[Player, ...]:
        return self.state.players


class RejectionReason(Enum):
    INSUFFICIENT_PARTICIPANTS = "INSUFFICIENT_PARTICIPANTS"
    PARTICIPANT_BUSY = "PARTICIPANT_BUSY"


@dataclass
class Reservation:
    """
    A roster held for a session that is still being set up.

    Reserved people count as committed until the session is created
    or the reservation is released.
    """
    session_id: str
    moderator: Player
    participants: list[Player]

    @property
    def people(self) -> list[Player]:
        return [self.moderator] + self.participants


@dataclass
class Rejection:
    """Why a session could not be created."""
    reason: RejectionReason
    message: str
    # session id -> players already committed to it
    conflicts: dict[str, list[Player]] = field(default_factory=dict)

    @property
    def unavailable(self) -> list[Player]:
        return [p for players in self.conflicts.values() for p in players]


class SessionRegistry:
    """
    Owns every live session.

    Responsibilities:
    - Create sessions, rejecting double-booked participants
    - Route commands to the session owning their context
    - Remove finished sessions
    """

    def __init__(
        self,
        transport: ChatTransport,
        tasks: TaskProvider,
        dispatcher: NotificationDispatcher | None = None,
        reducer: Reducer | None = None,
    ):
        self.transport = transport
        self.tasks = tasks
        self.executor = EffectExecutor(transport, dispatcher)
        self.reducer = reducer or Reducer()

        self._sessions: dict[str, Session] = {}
        self._rooms: dict[str, str] = {}  # room id -> session id
        self._players: dict[str, str] = {}  # player id -> session id
        self._reserved: dict[str, str] = {}  # player id -> reserved session id
        self._lock = asyncio.Lock()

    # =========================================================================
    # Creation
    # =========================================================================

    async def check_availability(self, moderator: Player, participants: list[Player]) -> Rejection | None:
        """Validate a prospective roster without creating anything."""
        async with self._lock:
            return self._check(moderator, self._unique_participants(moderator, participants))

    async def reserve(self, moderator: Player, participants: list[Player]) -> Reservation | Rejection:
        """
        Hold a roster while its chat room is set up.

        The reservation blocks every other request for the same people
        until `create_session` completes it or `release` drops it.
        """
        unique = self._unique_participants(moderator, participants)

        async with self._lock:
            rejection = self._check(moderator, unique)
            if rejection:
                return rejection

            reservation = Reservation(session_id=str(uuid.uuid4()), moderator=moderator, participants=unique)
            for person in reservation.people:
                self._reserved[person.id] = reservation.session_id

        logger.debug("roster_reserved", session_id=reservation.session_id, players=len(reservation.people))
        return reservation

    async def release(self, reservation: Reservation) -> None:
        """Drop a reservation that will not become a session. Idempotent."""
        async with self._lock:
            self._release(reservation)

    def _release(self, reservation: Reservation) -> None:
        for person in reservation.people:
            if self._reserved.get(person.id) == reservation.session_id:
                del self._reserved[person.id]

    async def create_session(
        self,
        moderator: Player,
        participants: list[Player],
        room: str,
        reservation: Reservation | None = None,
    ) -> Session | Rejection:
        """
        Create a new session in `room`.

        Returns the Session, or a Rejection when the roster is empty or
        someone is already playing in another live session. A reservation
        from `reserve` is consumed and its id becomes the session id.
        """
        unique = self._unique_participants(moderator, participants)

        async with self._lock:
            if reservation is not None:
                self._release(reservation)
            rejection = self._check(moderator, unique)
            if rejection:
                logger.info("session_rejected", reason=rejection.reason.value, conflicts=list(rejection.conflicts))
                return rejection

            session_id = reservation.session_id if reservation else str(uuid.uuid4())
            created_at = time.time()
            session = Session(
                session_id=session_id,
                room=room,
                state=SessionState.create(session_id, room, moderator, unique, created_at=created_at),
                created_at=created_at,
            )
            session.worker = SessionWorker(
                session,
                transport=self.transport,
                tasks=self.tasks,
                executor=self.executor,
                reducer=self.reducer,
                on_finished=self.remove,
                on_player_leave=self.on_player_leave,
            )

            self._sessions[session_id] = session
            self._rooms[room] = session_id
            for player in session.players:
                self._players[player.id] = session_id

        logger.info("session_created", session_id=session_id, room=room, players=len(session.players))
        return session

    def _unique_participants(self, moderator: Player, participants: list[Player]) -> list[Player]:
        """Drop duplicates and the moderator, keeping mention order."""
        seen = {moderator.id}
        unique = []
        for person in participants:
            if person.id not in seen:
                seen.add(person.id)
                unique.append(person)
        return unique

    def _check(self, moderator: Player, participants: list[Player]) -> Rejection | None:
        if not participants:
            return Rejection(
                reason=RejectionReason.INSUFFICIENT_PARTICIPANTS,
                message="Please mention at least one other person to join the game.",
            )

        conflicts: dict[str, list[Player]] = {}
        for person in [moderator] + participants:
            session_id = self._players.get(person.id) or self._reserved.get(person.id)
            if session_id is None:
                continue
            session = self._sessions.get(session_id)
            if session is None or session.is_active():
                conflicts.setdefault(session_id, []).append(person)

        if conflicts:
            return Rejection(
                reason=RejectionReason.PARTICIPANT_BUSY,
                message="Some people are already playing in another sprint planning.",
                conflicts=conflicts,
            )
        return None

    async def notify_conflicts(self, rejection: Rejection, requester: Player) -> None:
        """Warn each conflicting session that someone tried to double-book its players."""
        for session_id, players in rejection.conflicts.items():
            session = await self.get_session(session_id)
            if session is None or session.worker is None:
                continue
            await session.worker.announce([
                Effect.of(EffectType.DOUBLE_BOOKING, requester=requester, players=players),
            ])

    # =========================================================================
    # Routing
    # =========================================================================

    async def find_for_command(self, command: SessionCommand) -> Session | None:
        """
        The session owning a command's context.

        Room messages belong to the session of that room. Private
        messages belong to the one live session the sender plays in.
        """
        if command.private:
            return await self.find_by_player(command.sender.id)
        if command.room_id:
            return await self.find_by_room(command.room_id)
        return None

    async def route_command(self, command: SessionCommand) -> CommandOutcome | None:
        """
        Forward a command to the session that owns its context.

        Returns None when no session matches, so the caller can let the
        message fall through to other handlers.
        """
        session = await self.find_for_command(command)
        if session is None or session.worker is None:
            return None
        return await session.worker.submit(command)

    # =========================================================================
    # Lookup and removal
    # =========================================================================

    async def get_session(self, session_id: str) -> Session | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def find_by_room(self, room_id: str) -> Session | None:
        async with self._lock:
            session_id = self._rooms.get(room_id)
            return self._sessions.get(session_id) if session_id else None

    async def find_by_player(self, player_id: str) -> Session | None:
        async with self._lock:
            session_id = self._players.get(player_id)
            return self._sessions.get(session_id) if session_id else None

    async def list_active_sessions(self) -> list[Session]:
        async with self._lock:
            return [s for s in self._sessions.values() if s.is_active()]

    async def remove(self, session_id: str) -> bool:
        """Remove a session and its index entries. Idempotent."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False

            if self._rooms.get(session.room) == session_id:
                del self._rooms[session.room]
            for player_id in [pid for pid, sid in self._players.items() if sid == session_id]:
                del self._players[player_id]

        logger.info("session_removed", session_id=session_id, status=session.state.status.value)
        return True

    async def on_player_leave(self, session_id: str, player: Player) -> None:
        """Free a player who left, so they can join another session."""
        async with self._lock:
            if self._players.get(player.id) == session_id:
                del self._players[player.id]
        logger.info("player_left", session_id=session_id, player=player.id)

    def __len__(self) -> int:
        return len(self._sessions)
