"""
Formatting - Text presentation of votes, durations, tables and progress.

Pure presentation, no decision logic. Estimates are in hours.
"""

from __future__ import annotations
import math
from typing import Any, Iterable

from ..engine_core.state import COFFEE, Player, RoundQueue, TaskItem, Vote, VoteValue


def format_duration(hours: float) -> str:
    """'2 hours and 30 minutes', '1 hour', 'no time'."""
    if hours <= 0:
        return "no time"

    whole = math.floor(hours)
    minutes = math.ceil((hours - whole) * 60)
    if minutes >= 60:
        whole += 1
        minutes -= 60
    parts = []

    if whole > 0:
        parts.append(f"{whole} hour{'s' if whole > 1 else ''}")
    if minutes > 0:
        parts.append(f"{minutes} minute{'s' if minutes > 1 else ''}")

    return " and ".join(parts)


def format_vote(value: VoteValue) -> str:
    """'2 hours and 30 minutes (2.5)', ':coffee:', 'infinity'."""
    if isinstance(value, str):
        return ":coffee:" if value == COFFEE else value

    value = max(value, 0)
    number = f"{value:.1f}" if value % 1 > 0 else f"{value:.0f}"
    return f"{format_duration(value)} ({number})"


def format_list(items: list[str]) -> str:
    """'a', 'a and b', 'a, b and c'."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + " and " + items[-1]


def format_markdown_table(
    rows: list[dict[str, Any]],
    headers: list[str] | None = None,
    titles: dict[str, str] | None = None,
) -> str:
    """
    Render rows as a markdown table.

    `headers` selects and orders the columns (default: sorted keys of the
    first row); `titles` renames column headings.
    """
    if not rows:
        return ""

    titles = titles or {}
    headers = headers or sorted(rows[0].keys())
    heading = [titles.get(h, h) for h in headers]

    widths = [
        max([len(title)] + [len(str(row.get(h, ""))) for row in rows])
        for h, title in zip(headers, heading)
    ]

    def line(cells: Iterable[str]) -> str:
        return "| " + " | ".join(str(c).ljust(w) for c, w in zip(cells, widths)) + " |"

    lines = [
        line(heading),
        "|" + "|".join("-" * (w + 2) for w in widths) + "|",
    ]
    lines.extend(line(row.get(h, "") for h in headers) for row in rows)
    return "\n".join(lines)


def _vote_sort_key(vote: Vote) -> tuple[int, float]:
    # Numeric votes highest first, sentinel tokens last
    if vote.is_numeric:
        return (0, -float(vote.value))
    return (1, 0.0)


def format_vote_table(votes: Iterable[Vote], players: Iterable[Player]) -> str:
    """One-row table of each voter's vote, highest first."""
    names = {p.id: p.first_name for p in players}
    ordered = sorted(votes, key=_vote_sort_key)
    row = {names.get(v.person, v.person): format_vote(v.value) for v in ordered}
    return format_markdown_table([row], list(row.keys()))


def format_progress(rounds: RoundQueue) -> str:
    """'1 of 3 tasks completed, 1 skipped'."""
    completed = len(rounds.completed)
    output = f"{completed} of {completed + len(rounds.pending)} tasks completed"
    if rounds.skipped:
        output += f", {len(rounds.skipped)} skipped"
    return output


def format_link(title: str, link: str) -> str:
    return f"[{title}]({link})"


def format_task(task: TaskItem, rounds: RoundQueue) -> str:
    """Round header: number, parent task, link, progress and quoted description."""
    output = f"---\n:arrow_right: #{len(rounds.completed) + 1} "

    if task.parent_title:
        output += f"{task.parent_title} -> "

    output += f"{format_link(task.title, task.link)} ({format_progress(rounds)})"

    if task.description:
        output += "\n\n> " + "\n> ".join(task.description.split("\n")) + "\n"

    return output
