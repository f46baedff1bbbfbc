"""
API Module - HTTP interface.

Exposes the bot over REST so a relay can:
1. Deliver the chat messages the bot sees
2. Collect the messages the bot sends
3. Inspect live sessions

Everything is in-memory and session-scoped.

Run with: uvicorn --factory sprintpoker.api:create_app
"""

from .schemas import (
    # Requests
    MessageRequest,
    TallyRequest,
    # Responses
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    MessagesResponse,
    SessionListResponse,
    SessionSummary,
    TallyResponse,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    "MessageRequest",
    "TallyRequest",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "MessagesResponse",
    "SessionListResponse",
    "SessionSummary",
    "TallyResponse",
    "ErrorCode",
    "SessionStatus",
    "APIService",
    "create_app",
]
