"""
API Service - Glue between the HTTP adapter and the bot.

The service:
1. Turns relayed chat messages into IncomingMessage and hands them to the bot
2. Summarises live sessions
3. Exposes the messages captured by the in-memory transport
4. Tallies ad-hoc vote lists

This layer is framework-agnostic; the FastAPI app only converts
between these results and HTTP responses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import itertools

from .schemas import (
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    MessagesResponse,
    PersonInfo,
    RoundInfo,
    SentMessageInfo,
    SessionListResponse,
    SessionStatus,
    SessionSummary,
    TallyRequest,
    TallyResponse,
    VoteInfo,
)
from .. import __version__
from ..bot import PokerBot
from ..config import Settings
from ..engine_core.aggregation import tally_votes
from ..engine_core.grammar import parse_vote
from ..engine_core.state import Player, Vote
from ..errors import InvalidVoteError
from ..notifications.formatting import format_vote
from ..providers.memory import InMemoryChatTransport, InMemoryTaskProvider
from ..providers.transport import IncomingMessage
from ..session import Session, SessionRegistry


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        response = await service.deliver_message(request)
        sessions = await service.list_sessions()
    """
    settings: Settings = field(default_factory=Settings)
    transport: InMemoryChatTransport = field(default_factory=InMemoryChatTransport)
    tasks: InMemoryTaskProvider = field(default_factory=InMemoryTaskProvider)
    registry: SessionRegistry | None = None
    bot: PokerBot | None = None

    _message_ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def __post_init__(self):
        if self.registry is None:
            self.registry = SessionRegistry(self.transport, self.tasks)
        if self.bot is None:
            self.bot = PokerBot(
                self.transport,
                self.tasks,
                registry=self.registry,
                bot_handle=self.settings.bot_handle,
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> APIService:
        """Build a service, seeding tasklists from SPRINTPOKER_TASKS_FILE when set."""
        tasks = (
            InMemoryTaskProvider.from_file(settings.tasks_file, installation=settings.installation)
            if settings.tasks_file
            else InMemoryTaskProvider()
        )
        return cls(settings=settings, tasks=tasks)

    # =========================================================================
    # Messages
    # =========================================================================

    async def deliver_message(self, request: MessageRequest) -> MessageResponse:
        """
        Deliver a relayed chat message to the bot.

        The author becomes known to the transport, so later `poker`
        commands can mention them by handle.
        """
        author = Player(
            id=request.author.id,
            first_name=request.author.first_name,
            handle=request.author.handle,
        )
        if author.handle:
            self.transport.add_person(author)

        message = IncomingMessage(
            id=request.message_id or f"msg-{next(self._message_ids)}",
            author=author,
            content=request.content,
            room_id=request.room_id,
            private=request.private,
            mentions=tuple(request.mentions),
        )
        handled = await self.bot.handle_message(message)
        return MessageResponse(handled=handled)

    def room_messages(self, room_id: str) -> MessagesResponse:
        return self._messages("room", room_id)

    def person_messages(self, person_id: str) -> MessagesResponse:
        return self._messages("person", person_id)

    def _messages(self, kind: str, target: str) -> MessagesResponse:
        messages = [
            SentMessageInfo(kind=m.kind, target=m.target, content=m.content)
            for m in self.transport.sent
            if m.kind == kind and m.target == target
        ]
        return MessagesResponse(target=target, messages=messages, count=len(messages))

    # =========================================================================
    # Sessions
    # =========================================================================

    async def list_sessions(self) -> SessionListResponse:
        sessions = [self._session_to_response(s) for s in await self.registry.list_active_sessions()]
        return SessionListResponse(sessions=sessions, count=len(sessions))

    async def get_session(self, session_id: str) -> SessionSummary | ErrorResponse:
        session = await self.registry.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return self._session_to_response(session)

    def _session_to_response(self, session: Session) -> SessionSummary:
        state = session.state
        current = state.current_round

        current_round = None
        if current is not None:
            current_round = RoundInfo(
                round_id=current.id,
                task_title=current.task.title,
                task_link=current.task.link,
                votes=[
                    VoteInfo(person=v.person, value=format_vote(v.value), revisions=len(v.history))
                    for v in current.votes
                ],
            )

        return SessionSummary(
            session_id=session.session_id,
            room=session.room,
            status=SessionStatus(state.status.value),
            moderator=_person_info(state.moderator),
            players=[_person_info(p) for p in state.players],
            tasklist=state.tasklist.title if state.tasklist else None,
            current_round=current_round,
            rounds_pending=len(state.rounds.pending),
            rounds_completed=len(state.rounds.completed),
            rounds_skipped=len(state.rounds.skipped),
            created_at=session.created_at,
        )

    # =========================================================================
    # Tally
    # =========================================================================

    def tally(self, request: TallyRequest) -> TallyResponse | ErrorResponse:
        """
        Tally a list of vote utterances.

        Voters are identified by their position in the list, starting at 1.
        """
        votes = []
        for position, text in enumerate(request.votes, start=1):
            try:
                value = parse_vote(text)
            except InvalidVoteError as e:
                return ErrorResponse(error=e.message, error_code=ErrorCode.INVALID_VOTE)
            votes.append(Vote(person=str(position), value=value, timestamp=0.0))

        result = tally_votes(votes)
        return TallyResponse(
            count=result.count,
            numeric_count=result.numeric_count,
            min=result.min,
            max=result.max,
            mean=result.mean,
            suggested=result.suggested,
            deviation=result.deviation,
            sentinel_voters=result.sentinel_voters,
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="sprintpoker",
            version=__version__,
            sessions=len(self.registry),
        )


def _person_info(player: Player) -> PersonInfo:
    return PersonInfo(id=player.id, first_name=player.first_name, handle=player.handle)
