"""
Input grammar for votes and estimates.

A vote is a non-negative decimal number or one of the sentinel tokens
`coffee` / `infinity`, optionally preceded by whitespace. Anything
after the vote is ignored, so "5 because of the migration" counts as 5.
"""

from __future__ import annotations
import math
import re

from ..errors import InvalidEstimateError, InvalidVoteError
from .state import COFFEE, INFINITY, VoteValue


VOTE_EXPR = re.compile(r"^\s*((?:\d+(?:\.\d+)?)|coffee|infinity)")


def parse_vote(text: str) -> VoteValue:
    """
    Parse a vote utterance.

    Returns a float, or the sentinel token string.
    Raises InvalidVoteError when the text does not start with a vote.
    """
    match = VOTE_EXPR.match(text or "")
    if not match:
        raise InvalidVoteError(f"Not a vote: {text!r}")

    token = match.group(1)
    if token in (COFFEE, INFINITY):
        return token
    return float(token)


def is_vote(text: str) -> bool:
    return bool(VOTE_EXPR.match(text or ""))


def parse_estimate(text: str) -> float:
    """
    Parse the moderator's final estimate in hours.

    Raises InvalidEstimateError for non-numeric, non-finite or negative input.
    """
    try:
        value = float((text or "").strip().split()[0])
    except (ValueError, IndexError):
        raise InvalidEstimateError(f"Not a number: {text!r}")

    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidEstimateError(f"Estimate must be a positive number: {text!r}")

    return value
