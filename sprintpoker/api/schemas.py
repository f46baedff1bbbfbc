"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a chat-service webhook relay
and the bot. All responses carry explicit types for schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has already finished
- VALIDATION_ERROR: Request body is malformed
- INVALID_VOTE: A vote did not match the vote grammar
- INVALID_ESTIMATE: An estimate was not a positive number
- INVALID_TASKLIST: A tasklist reference could not be parsed
- PERSON_NOT_FOUND: A mentioned handle does not resolve to a person
- TASK_PROVIDER_ERROR: The task provider failed
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    WAITING = "waiting"
    READY = "ready"
    ROUND = "round"
    MODERATION = "moderation"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_VOTE = "INVALID_VOTE"
    INVALID_ESTIMATE = "INVALID_ESTIMATE"
    INVALID_TASKLIST = "INVALID_TASKLIST"
    PERSON_NOT_FOUND = "PERSON_NOT_FOUND"
    TASK_PROVIDER_ERROR = "TASK_PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PersonInfo(BaseModel):
    """A chat identity."""
    id: str
    first_name: str
    handle: Optional[str] = None


class VoteInfo(BaseModel):
    """A live vote in the current round."""
    person: str
    value: str = Field(description="Number as text, or coffee / infinity")
    revisions: int = Field(0, description="How many times the vote was changed")


class RoundInfo(BaseModel):
    """The round being voted on."""
    round_id: str
    task_title: str
    task_link: Optional[str] = None
    votes: list[VoteInfo] = Field(default_factory=list)


class SentMessageInfo(BaseModel):
    """An outbound message captured by the in-memory transport."""
    kind: str = Field(description="room or person")
    target: str
    content: str


# =============================================================================
# Request Models
# =============================================================================

class MessageRequest(BaseModel):
    """An incoming chat message relayed to the bot."""
    message_id: Optional[str] = Field(None, description="Chat service message id")
    author: PersonInfo
    content: str = Field(..., description="Message text")
    room_id: Optional[str] = Field(None, description="Room the message was posted in")
    private: bool = Field(False, description="Direct message to the bot")
    mentions: list[str] = Field(
        default_factory=list, description="Handles mentioned in the message, in order"
    )


class TallyRequest(BaseModel):
    """Votes to aggregate."""
    votes: list[str] = Field(..., description="Vote utterances, e.g. ['5', '8', 'coffee']")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    api_version: str = Field("v1", description="API version")


class MessageResponse(BaseModel):
    """Result of delivering a message."""
    handled: bool = Field(description="Whether the bot acted on the message")
    api_version: str = "v1"


class SessionSummary(BaseModel):
    """Snapshot of one live session."""
    session_id: str
    room: str
    status: SessionStatus
    moderator: PersonInfo
    players: list[PersonInfo]
    tasklist: Optional[str] = Field(None, description="Title of the planned tasklist")
    current_round: Optional[RoundInfo] = None
    rounds_pending: int = 0
    rounds_completed: int = 0
    rounds_skipped: int = 0
    created_at: float
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing live sessions."""
    sessions: list[SessionSummary]
    count: int


class MessagesResponse(BaseModel):
    """Messages the bot sent to one room or person."""
    target: str
    messages: list[SentMessageInfo]
    count: int


class TallyResponse(BaseModel):
    """PERT tally of a list of votes."""
    count: int
    numeric_count: int
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    suggested: Optional[float] = Field(None, description="(min + 4 * mean + max) / 6")
    deviation: Optional[float] = Field(None, description="(max - min) / 6")
    sentinel_voters: dict[str, list[str]] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    sessions: int = 0
