"""
Bot - Chat command surface.

    poker @person...        create a session (any room member)
    plan <tasklist url>     moderator, waiting
    start                   moderator, ready
    vote <value>            any player, round (bare value in private)
    skip / pass / estimate  moderator, round or moderation
    status                  any player
    exit                    any player
"""

from .commands import ParsedCommand, parse_command, extract_mentions, strip_mention
from .poker_bot import PokerBot, ROOM_TITLE

__all__ = [
    "ParsedCommand",
    "parse_command",
    "extract_mentions",
    "strip_mention",
    "PokerBot",
    "ROOM_TITLE",
]
