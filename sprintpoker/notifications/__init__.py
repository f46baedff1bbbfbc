"""
Notifications - Delivery and presentation of session announcements.
"""

from .dispatcher import NotificationDispatcher, DeliveryReport
from .formatting import (
    format_duration,
    format_vote,
    format_list,
    format_markdown_table,
    format_vote_table,
    format_progress,
    format_task,
)

__all__ = [
    "NotificationDispatcher",
    "DeliveryReport",
    "format_duration",
    "format_vote",
    "format_list",
    "format_markdown_table",
    "format_vote_table",
    "format_progress",
    "format_task",
]
