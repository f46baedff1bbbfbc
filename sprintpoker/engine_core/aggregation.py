"""
Vote Aggregation - Tallies and PERT consensus for a round.

Pure functions, no state. Sentinel votes (coffee, infinity) are
recorded like any vote but excluded from the numeric aggregates.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from statistics import mean
from typing import Iterable

from .state import Round, Vote, SENTINEL_VOTES


@dataclass(frozen=True)
class VoteTally:
    """
    Aggregates of the votes in one round.

    When no numeric vote was cast the numeric fields are None.
    """
    count: int
    numeric_count: int
    min: float | None = None
    max: float | None = None
    mean: float | None = None

    # PERT three-point estimate
    suggested: float | None = None
    deviation: float | None = None

    # token -> person ids, in vote order
    sentinel_voters: dict[str, list[str]] = field(default_factory=dict)

    @property
    def has_estimate(self) -> bool:
        return self.suggested is not None


def numeric_values(votes: Iterable[Vote]) -> list[float]:
    """Extract the numeric vote values, ignoring sentinel tokens."""
    return [float(v.value) for v in votes if v.is_numeric]


def pert(values: list[float]) -> tuple[float, float]:
    """
    Three-point estimate of a list of values.

    Returns (suggested, deviation) where
    suggested = (min + 4 * mean + max) / 6 and deviation = (max - min) / 6.
    """
    low, high, avg = min(values), max(values), mean(values)
    return (low + 4 * avg + high) / 6, (high - low) / 6


def tally_votes(votes: Iterable[Vote]) -> VoteTally:
    """Tally an arbitrary collection of votes."""
    votes = list(votes)
    values = numeric_values(votes)

    sentinel_voters: dict[str, list[str]] = {}
    for vote in votes:
        if vote.value in SENTINEL_VOTES:
            sentinel_voters.setdefault(vote.value, []).append(vote.person)

    if not values:
        return VoteTally(
            count=len(votes),
            numeric_count=0,
            sentinel_voters=sentinel_voters,
        )

    suggested, deviation = pert(values)
    return VoteTally(
        count=len(votes),
        numeric_count=len(values),
        min=min(values),
        max=max(values),
        mean=mean(values),
        suggested=suggested,
        deviation=deviation,
        sentinel_voters=sentinel_voters,
    )


def tally(round_: Round) -> VoteTally:
    """Tally the votes of a round."""
    return tally_votes(round_.votes)
