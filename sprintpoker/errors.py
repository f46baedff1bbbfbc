"""
Domain errors.

Every error carries an error_code that mirrors the API ErrorCode enum,
so callers can map failures without string matching.
"""

from __future__ import annotations


class SprintPokerError(Exception):
    """Base class for sprintpoker errors."""
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class InvalidInputError(SprintPokerError):
    """User input that does not match the expected grammar."""
    error_code = "VALIDATION_ERROR"


class InvalidVoteError(InvalidInputError):
    error_code = "INVALID_VOTE"


class InvalidEstimateError(InvalidInputError):
    error_code = "INVALID_ESTIMATE"


class InvalidTasklistError(InvalidInputError):
    error_code = "INVALID_TASKLIST"


class PersonNotFoundError(SprintPokerError):
    """A chat handle could not be resolved to a person."""
    error_code = "PERSON_NOT_FOUND"

    def __init__(self, handle: str):
        super().__init__(f"Person not found: {handle}")
        self.handle = handle


class TaskProviderError(SprintPokerError):
    """The task provider failed to resolve, list or update items."""
    error_code = "TASK_PROVIDER_ERROR"
