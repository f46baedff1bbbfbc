"""
Effect Executor - Turns reducer effects into chat notifications.

Effects are executed strictly in the order the reducer emitted them,
and each effect is fully dispatched before the next one starts. Many
announcements are rendered per recipient: the moderator gets
instructions the other players do not, and the room (recipient None)
gets the public wording.
"""

from __future__ import annotations
import time

from ..engine_core.aggregation import VoteTally
from ..engine_core.effects import Effect
from ..engine_core.state import COFFEE, Player, SessionState, SessionStatus
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.formatting import (
    format_duration,
    format_link,
    format_list,
    format_markdown_table,
    format_progress,
    format_task,
    format_vote,
    format_vote_table,
)
from ..observability.logging import get_logger
from ..providers.transport import ChatTransport
from .authorization import allowed_commands
from .commands import CommandContext

logger = get_logger(__name__)


class EffectExecutor:
    """Executes effects against the notification dispatcher."""

    def __init__(self, transport: ChatTransport, dispatcher: NotificationDispatcher | None = None):
        self.transport = transport
        self.dispatcher = dispatcher or NotificationDispatcher(transport)

    async def execute(self, effects: list[Effect], state: SessionState) -> None:
        """Execute effects in order against the post-transition state."""
        for effect in effects:
            handler = getattr(self, f"_on_{effect.effect_type.value}", None)
            if handler is None:
                logger.warning("unhandled_effect", effect=effect.effect_type.value)
                continue
            logger.debug("execute_effect", effect=effect.effect_type.value)
            await handler(effect, state)

    async def _broadcast(self, state: SessionState, message, omit=()) -> None:
        await self.dispatcher.broadcast(state.players, state.room, message, omit=omit)

    async def _bot_mention(self) -> str:
        return self.transport.format_mention(await self.transport.get_current_user())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def _on_welcome(self, effect: Effect, state: SessionState) -> None:
        bot = await self._bot_mention()
        moderator = state.moderator

        def welcome(player: Player | None) -> str:
            output = ":mega: Welcome to Sprint Planning Poker!\n"
            if player and player.id == moderator.id:
                output += (
                    f":guardsman: {moderator.first_name}, you are the moderator. "
                    "To pick a tasklist to plan, send `plan <tasklist url>`.\n"
                )
            else:
                output += f":guardsman: {self.transport.format_mention(moderator)} is the moderator.\n"
                output += (
                    ":mega: We're waiting for the moderator to pick a tasklist to plan "
                    f"(`{bot} plan <tasklist url>`).\n"
                )
            return output

        await self._broadcast(state, welcome)

    async def _on_new_game(self, effect: Effect, state: SessionState) -> None:
        tasklist = effect["tasklist"]
        bot = await self._bot_mention()
        moderator = state.moderator

        await self._broadcast(
            state,
            f":mega: Planning: {format_link(tasklist.title, tasklist.link)} ({effect['task_count']} tasks)",
        )

        def waiting(player: Player | None) -> str:
            if player is None:
                return (
                    f":mega: Waiting for the moderator to start "
                    f"({self.transport.format_mention(moderator)}, send `{bot} start`)."
                )
            if player.id == moderator.id:
                return f":mega: Waiting for you to start the game, {moderator.first_name}. Send `start`."
            return ":mega: Waiting for moderator to start."

        await self._broadcast(state, waiting)

    async def _on_next_round(self, effect: Effect, state: SessionState) -> None:
        round_ = effect["round"]
        final_vote = effect.get("final_vote")
        bot = await self._bot_mention()
        task = round_.task

        if final_vote is not None:
            await self._broadcast(state, f":mega: Moderator picked final estimate of **{format_vote(final_vote)}**.")

        await self._broadcast(state, format_task(task, state.rounds))

        def instructions(player: Player | None) -> str:
            is_moderator = player is not None and player.id == state.moderator.id

            if player is None:
                output = f":mega: Please vote by sending `{bot} vote <estimate>` or in a private message.\n"
            else:
                output = ":mega: Please vote by sending just a number estimate.\n"

            if task.estimated_minutes:
                output += f":warning: This task already has an estimate of {format_vote(task.estimated_minutes / 60)}.\n"
            if task.predecessor_count:
                output += f":warning: This is a parent task of {task.predecessor_count} subtasks.\n"

            if task.is_skippable:
                if is_moderator:
                    output += ":guardsman: You, as moderator, can skip the task by sending `skip`.\n"
                else:
                    output += f":guardsman: The moderator can skip the task by `{bot} skip`.\n"

            if is_moderator:
                output += (
                    ":guardsman: You can manually set the estimate by sending `estimate <estimate>` "
                    "or push the task to the end with `pass`.\n"
                )

            if player is None:
                return output + ":warning: Voting here is **public**."
            return output + ":white_circle: Voting here is **private**."

        await self._broadcast(state, instructions)

    async def _on_game_complete(self, effect: Effect, state: SessionState) -> None:
        tasklist = state.tasklist
        finished = state.finished_at or time.time()
        elapsed = (finished - (state.started_at or finished)) / 3600

        output = f":mega: Sprint planning complete: {format_link(tasklist.title, tasklist.link)}\n"
        output += f":hourglass: The planning took **{format_duration(elapsed)}**.\n"

        completed = state.rounds.completed
        if completed:
            total = sum(r.final_vote for r in completed)
            output += f":clock2: The sprint is **{format_vote(total)}** in total.\n"

            headers = ["title"] + [p.first_name for p in state.players] + ["final_vote"]
            rows = []
            for r in completed:
                row = {"title": format_link(r.task.title, r.task.link), "final_vote": r.final_vote}
                for player in state.players:
                    vote = r.get_vote(player.id)
                    row[player.first_name] = vote.value if vote else "-"
                rows.append(row)

            table = format_markdown_table(rows, headers, {"title": "Title", "final_vote": "Final Vote"})
            output += f"\n{table}\n"

        if state.rounds.skipped:
            skipped = "\n".join(f" * {format_link(r.task.title, r.task.link)}" for r in state.rounds.skipped)
            output += f"\nSkipped tasks:\n{skipped}"

        await self._broadcast(state, output)

    async def _on_moderator_left(self, effect: Effect, state: SessionState) -> None:
        await self._broadcast(state, ":warning: Moderator has left sprint planning, cancelling! Sprint planning over.")

    async def _on_player_left(self, effect: Effect, state: SessionState) -> None:
        player = effect["player"]
        await self._broadcast(state, f":warning: {player.first_name} has left sprint planning.")
        await self.dispatcher.send_to_person(
            player,
            f":warning: {player.first_name} you're out of the game and cannot participate any more. "
            "Please leave the room.",
        )

    async def _on_double_booking(self, effect: Effect, state: SessionState) -> None:
        requester = effect["requester"]
        names = format_list([p.first_name for p in effect["players"]])
        await self._broadcast(
            state,
            f":warning: {requester.first_name} tried to start another sprint planning with {names}, "
            "who are already playing here.",
        )

    # =========================================================================
    # Voting
    # =========================================================================

    async def _on_vote_counted(self, effect: Effect, state: SessionState) -> None:
        person, vote = effect["person"], effect["vote"]
        if effect["direct"]:
            await self._broadcast(state, f":ballot_box_with_check: {person.first_name} has voted.")
        else:
            await self._broadcast(state, f":ballot_box_with_check: {person.first_name} has voted {format_vote(vote.value)}.")

    async def _on_vote_updated(self, effect: Effect, state: SessionState) -> None:
        person, vote = effect["person"], effect["vote"]
        if effect["direct"]:
            await self.dispatcher.send_to_person(
                person, f"Thanks, your vote has been updated to {format_vote(vote.value)}.",
            )
            await self._broadcast(
                state, f":ballot_box_with_check: {person.first_name} has updated their vote.", omit=[person],
            )
        else:
            await self._broadcast(
                state,
                f":ballot_box_with_check: {person.first_name} has updated their vote to {format_vote(vote.value)}.",
            )

    async def _on_all_voted(self, effect: Effect, state: SessionState) -> None:
        round_ = effect["round"]
        summary: VoteTally = effect["tally"]

        if summary.has_estimate:
            suggestion = (
                f"Suggested estimate: {format_vote(summary.suggested)} "
                f"(can take up to {format_vote(summary.deviation)} more, based on vote deviation)"
            )
        else:
            suggestion = "Nobody gave a numeric estimate."

        await self._broadcast(
            state,
            f":high_brightness: Thank you, everyone has voted. {suggestion}\n\n"
            f"{format_vote_table(round_.votes, state.players)}\n\n"
            ":mega: Awaiting moderator to estimate task.",
        )

        coffee_voters = summary.sentinel_voters.get(COFFEE, [])
        if coffee_voters:
            names = [p.first_name for p in (state.get_player(pid) for pid in coffee_voters) if p]
            await self._broadcast(state, f":coffee: {format_list(names)} feels it's time for a coffee break.")

        await self.dispatcher.send_to_person(
            state.moderator,
            "Okay moderator, please submit your estimate. (`estimate 10` to estimate 10 hours)",
        )

    async def _on_skipped(self, effect: Effect, state: SessionState) -> None:
        await self._broadcast(state, f":mega: Moderator has skipped the task *{effect['round'].task.title}*.")

    async def _on_passed(self, effect: Effect, state: SessionState) -> None:
        await self._broadcast(state, f":mega: Moderator has passed the task *{effect['round'].task.title}*.")


def describe_status(state: SessionState, person_id: str, context: CommandContext) -> str:
    """Read-only summary of a session for the `status` command."""
    lines = [f":information_source: Sprint planning is **{state.status.value}**."]
    lines.append(f":guardsman: Moderator: {state.moderator.first_name}")
    lines.append(f":busts_in_silhouette: Players: {format_list([p.first_name for p in state.players])}")

    if state.tasklist:
        lines.append(f":clipboard: Tasklist: {format_link(state.tasklist.title, state.tasklist.link)}")
        lines.append(f":bar_chart: {format_progress(state.rounds)}")

    current = state.current_round
    if current and state.status in (SessionStatus.ROUND, SessionStatus.MODERATION):
        voted = [p.first_name for p in state.players if current.get_vote(p.id)]
        waiting = [p.first_name for p in state.players if not current.get_vote(p.id)]
        lines.append(f":arrow_right: Current task: {format_link(current.task.title, current.task.link)}")
        if voted:
            lines.append(f":ballot_box_with_check: Voted: {format_list(voted)}")
        if waiting:
            lines.append(f":hourglass: Waiting for: {format_list(waiting)}")

    commands = [f"`{name.value}`" for name in allowed_commands(state, person_id, context)]
    if commands:
        lines.append(f":keyboard: You can send: {', '.join(commands)}")

    return "\n".join(lines)
