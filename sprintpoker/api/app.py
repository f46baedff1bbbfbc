"""
FastAPI Application - HTTP adapter for the bot.

Endpoints:
    POST   /api/v1/messages                  Deliver an incoming chat message
    GET    /api/v1/sessions                  List live sessions
    GET    /api/v1/sessions/{id}             Get session summary
    GET    /api/v1/rooms/{room_id}/messages  Messages the bot sent to a room
    GET    /api/v1/people/{id}/messages      Messages the bot sent to a person
    POST   /api/v1/tally                     PERT tally of a vote list
    GET    /api/v1/health                    Health check

Outbound messages go to the in-memory transport; a relay polls the
message endpoints and forwards them to the chat service.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..errors import SprintPokerError
from ..observability.logging import get_logger
from .schemas import (
    # Request models
    MessageRequest,
    TallyRequest,
    # Response models
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    MessagesResponse,
    SessionListResponse,
    SessionSummary,
    TallyResponse,
    # Enums
    ErrorCode,
)
from .service import APIService

logger = get_logger(__name__)


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or (service.settings if service else Settings.from_env())
    api_service = service or APIService.from_settings(settings)

    app = FastAPI(
        title="Sprint Poker API",
        description="""
Planning-poker bot for sprint estimation.

## Flow

1. Relay every chat message the bot can see to `POST /api/v1/messages`
2. Forward what the bot sends, read from the room and people message endpoints

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist or has finished |
| `INVALID_VOTE` | A vote did not match the vote grammar |
| `VALIDATION_ERROR` | Request body is malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=message, error_code=error_code).model_dump(mode="json"),
        )

    @app.exception_handler(SprintPokerError)
    async def handle_domain_error(request, exc: SprintPokerError) -> JSONResponse:
        try:
            code = ErrorCode(exc.error_code)
        except ValueError:
            code = ErrorCode.INTERNAL_ERROR
        logger.warning("request_failed", path=request.url.path, error_code=code.value, error=exc.message)
        return make_error_response(code, exc.message)

    # =========================================================================
    # Message Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/messages",
        response_model=MessageResponse,
        tags=["Messages"],
        summary="Deliver an incoming chat message",
    )
    async def deliver_message(request: MessageRequest) -> MessageResponse:
        """
        Hand a chat message to the bot.

        `handled` is false when the message was not addressed to the bot
        or no session claimed it.
        """
        return await api_service.deliver_message(request)

    @app.get(
        "/api/v1/rooms/{room_id}/messages",
        response_model=MessagesResponse,
        tags=["Messages"],
        summary="Messages the bot sent to a room",
    )
    async def room_messages(room_id: str) -> MessagesResponse:
        return api_service.room_messages(room_id)

    @app.get(
        "/api/v1/people/{person_id}/messages",
        response_model=MessagesResponse,
        tags=["Messages"],
        summary="Messages the bot sent to a person",
    )
    async def person_messages(person_id: str) -> MessagesResponse:
        return api_service.person_messages(person_id)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List live sessions",
    )
    async def list_sessions() -> SessionListResponse:
        return await api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionSummary,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session summary",
    )
    async def get_session(session_id: str) -> Union[SessionSummary, JSONResponse]:
        """Roster, status and current round of a live session."""
        response = await api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, status_code=404)
        return response

    # =========================================================================
    # Tally Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/tally",
        response_model=TallyResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Estimation"],
        summary="PERT tally of a list of votes",
    )
    async def tally(request: TallyRequest) -> Union[TallyResponse, JSONResponse]:
        """
        Aggregate votes without a session.

        Sentinel votes (`coffee`, `infinity`) are counted but excluded
        from the numeric aggregates.
        """
        response = api_service.tally(request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error)
        return response

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return api_service.health()

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Sprint Poker API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    return app
