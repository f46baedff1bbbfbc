"""
Notification Dispatcher - Fans a message out to a session's audience.

A broadcast goes to every current player individually (concurrently)
and then once to the shared room. A broadcast is complete once every
send has been attempted; a failed send is logged and reported but
never aborts delivery to the other recipients.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Iterable, Union
import asyncio

from ..engine_core.state import Player
from ..observability.logging import get_logger
from ..providers.transport import ChatTransport

logger = get_logger(__name__)

# A message is fixed text, or rendered per recipient (None means the room)
Message = Union[str, Callable[[Union[Player, None]], Union[str, None]]]


@dataclass
class DeliveryReport:
    """Outcome of one broadcast."""
    attempted: int = 0
    failed: list[str] = field(default_factory=list)  # recipient ids

    @property
    def ok(self) -> bool:
        return not self.failed


def render(message: Message, recipient: Player | None) -> str | None:
    return message(recipient) if callable(message) else message


class NotificationDispatcher:
    """Sends notifications through a chat transport."""

    def __init__(self, transport: ChatTransport):
        self.transport = transport

    async def broadcast(
        self,
        players: Iterable[Player],
        room_id: str | None,
        message: Message,
        omit: Iterable[Player] = (),
    ) -> DeliveryReport:
        """Send to every player not in `omit`, then to the room."""
        omitted = {p.id for p in omit}
        recipients = [p for p in players if p.id not in omitted]
        report = DeliveryReport()

        sends = []
        targets = []
        for player in recipients:
            content = render(message, player)
            if content:
                sends.append(self.transport.send_message_to_person(player, content))
                targets.append(player.id)

        results = await asyncio.gather(*sends, return_exceptions=True)
        report.attempted += len(results)
        for target, result in zip(targets, results):
            if isinstance(result, BaseException):
                report.failed.append(target)
                logger.warning("notification_failed", recipient=target, error=str(result))

        if room_id:
            content = render(message, None)
            if content:
                report.attempted += 1
                if not await self.send_to_room(room_id, content):
                    report.failed.append(room_id)

        return report

    async def send_to_person(self, person: Player, content: str) -> bool:
        try:
            await self.transport.send_message_to_person(person, content)
        except Exception as e:
            logger.warning("notification_failed", recipient=person.id, error=str(e))
            return False
        return True

    async def send_to_room(self, room_id: str, content: str) -> bool:
        try:
            await self.transport.send_message_to_room(room_id, content)
        except Exception as e:
            logger.warning("notification_failed", recipient=room_id, error=str(e))
            return False
        return True
