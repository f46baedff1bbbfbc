"""
Command parsing for chat messages.

In a room the bot only listens to messages that start with its mention:

    @bot poker @alice @bob
    @bot vote 5

In a private conversation the mention is not needed, and a bare vote
("5", "coffee") counts as a vote.
"""

from __future__ import annotations
from dataclasses import dataclass
import re

from ..engine_core.grammar import is_vote
from ..session.commands import CommandName

POKER = "poker"

KNOWN_COMMANDS = {POKER} | {name.value for name in CommandName}

MENTION_EXPR = re.compile(r"@([\w.\-]+)")


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    argument: str = ""

    @property
    def command_name(self) -> CommandName | None:
        try:
            return CommandName(self.name)
        except ValueError:
            return None


def strip_mention(text: str, bot_handle: str) -> str | None:
    """Remove a leading bot mention. Returns None when the text does not start with one."""
    match = re.match(rf"^\s*@{re.escape(bot_handle)}\b[:,]?\s*", text, flags=re.IGNORECASE)
    if not match:
        return None
    return text[match.end():]


def parse_command(text: str, bot_handle: str, private: bool = False) -> ParsedCommand | None:
    """Parse a message into a command, or None when it is not addressed to the bot."""
    text = text or ""

    if private:
        body = strip_mention(text, bot_handle)
        if body is None:
            body = text
    else:
        body = strip_mention(text, bot_handle)
        if body is None:
            return None

    body = body.strip()
    if not body:
        return None

    head, _, rest = body.partition(" ")
    name = head.lower()

    if name in KNOWN_COMMANDS:
        return ParsedCommand(name=name, argument=rest.strip())

    if private and is_vote(body):
        return ParsedCommand(name=CommandName.VOTE.value, argument=body)

    return None


def extract_mentions(text: str, exclude: tuple[str, ...] = ()) -> list[str]:
    """Handles mentioned in the text, in order, without duplicates."""
    excluded = {h.lower() for h in exclude}
    handles = []
    for handle in MENTION_EXPR.findall(text or ""):
        if handle.lower() not in excluded and handle not in handles:
            handles.append(handle)
    return handles
