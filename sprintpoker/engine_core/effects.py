"""
Effects - Notification intents emitted by the reducer.

The reducer never performs I/O. Instead each transition returns an
ordered list of effects, which the effect executor turns into chat
messages in exactly that order.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EffectType(Enum):
    """Kinds of notification intents."""
    WELCOME = "welcome"
    NEW_GAME = "new_game"
    NEXT_ROUND = "next_round"
    VOTE_COUNTED = "vote_counted"
    VOTE_UPDATED = "vote_updated"
    ALL_VOTED = "all_voted"
    SKIPPED = "skipped"
    PASSED = "passed"
    GAME_COMPLETE = "game_complete"
    MODERATOR_LEFT = "moderator_left"
    PLAYER_LEFT = "player_left"
    DOUBLE_BOOKING = "double_booking"


@dataclass(frozen=True)
class Effect:
    """A single notification intent with its payload."""
    effect_type: EffectType
    payload: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    @classmethod
    def of(cls, effect_type: EffectType, **payload: Any) -> Effect:
        return cls(effect_type=effect_type, payload=payload)
