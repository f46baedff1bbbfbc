"""
Session Worker - The single logical worker of one session.

Each command goes through:
1. Authorization against the current status and the sender's role
2. Input parsing and any external lookups (tasklist, estimate write-back)
3. The reducer, producing a new snapshot and ordered effects
4. Effect execution, fully dispatched before the next command starts

Commands are queued and drained by one consumer task at a time, so
commands for the same session are processed strictly in arrival order.
Different sessions have different workers and run independently.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, TYPE_CHECKING
import asyncio

from ..engine_core.action import Action
from ..engine_core.effects import Effect, EffectType
from ..engine_core.grammar import parse_estimate, parse_vote
from ..engine_core.reducer import Reducer
from ..engine_core.state import Player
from ..errors import (
    InvalidEstimateError,
    InvalidInputError,
    InvalidTasklistError,
    InvalidVoteError,
    TaskProviderError,
)
from ..observability.logging import bind_session, get_logger, unbind_session
from ..providers.tasks import EXAMPLE_TASKLIST, TaskProvider, parse_tasklist_reference
from ..providers.transport import ChatTransport
from .authorization import authorize, role_of
from .commands import CommandName, CommandOutcome, SessionCommand
from .executor import EffectExecutor, describe_status

if TYPE_CHECKING:
    from .manager import Session

logger = get_logger(__name__)

SessionCallback = Callable[[str], Awaitable[None]]
PlayerCallback = Callable[[str, Player], Awaitable[None]]


class SessionWorker:
    """
    Processes commands for one session, one at a time.

    Usage:
        worker = SessionWorker(session, transport, tasks, executor)
        outcome = await worker.submit(command)

    `submit` returns once the command's effects have been dispatched.
    """

    def __init__(
        self,
        session: Session,
        transport: ChatTransport,
        tasks: TaskProvider,
        executor: EffectExecutor,
        reducer: Reducer | None = None,
        on_finished: SessionCallback | None = None,
        on_player_leave: PlayerCallback | None = None,
    ):
        self.session = session
        self.transport = transport
        self.tasks = tasks
        self.executor = executor
        self.reducer = reducer or Reducer()
        self.on_finished = on_finished
        self.on_player_leave = on_player_leave

        self._queue: asyncio.Queue = asyncio.Queue()
        self._drainer: asyncio.Task | None = None
        self.processed = 0

    @property
    def busy(self) -> bool:
        return self._drainer is not None and not self._drainer.done()

    async def submit(self, command: SessionCommand) -> CommandOutcome:
        """Queue a command and wait until it has been fully processed."""
        return await self._enqueue(lambda: self._process(command))

    async def announce(self, effects: list[Effect]) -> None:
        """Queue effects that did not come from a command (welcome, warnings)."""
        await self._enqueue(lambda: self._execute(effects))

    async def _enqueue(self, job: Callable[[], Awaitable[Any]]) -> Any:
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future))

        if not self.busy:
            self._drainer = asyncio.create_task(self._drain())

        return await future

    async def _drain(self) -> None:
        """Run queued jobs in order until the queue is empty."""
        while not self._queue.empty():
            job, future = self._queue.get_nowait()
            bind_session(self.session.session_id)
            try:
                result = await job()
            except Exception as e:
                logger.exception("session_job_failed", error=str(e))
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self.processed += 1
                unbind_session()

    async def _execute(self, effects: list[Effect]) -> None:
        await self.executor.execute(effects, self.session.state)

    # =========================================================================
    # Command processing
    # =========================================================================

    async def _process(self, command: SessionCommand) -> CommandOutcome:
        state = self.session.state

        if state.is_terminal:
            return CommandOutcome.ignored()

        role = role_of(state, command.sender.id)
        if not authorize(state.status, role, command.context, command.name):
            logger.debug(
                "command_not_visible",
                command=command.name.value,
                role=role.value,
                status=state.status.value,
            )
            return CommandOutcome.ignored()

        if command.name == CommandName.STATUS:
            await self._reply(command, describe_status(state, command.sender.id, command.context))
            return CommandOutcome.applied()

        try:
            action = await self._prepare(command)
        except (InvalidInputError, TaskProviderError) as e:
            await self._reply(command, self._error_reply(command, e))
            return CommandOutcome.rejected(e.message, e.error_code)

        result = self.reducer.apply(self.session.state, action)
        if not result.success:
            await self._reply(command, result.error)
            return CommandOutcome.rejected(result.error, result.error_code)

        self.session.state = result.new_state
        logger.info(
            "command_applied",
            command=command.name.value,
            status=result.new_state.status.value,
            effects=[e.effect_type.value for e in result.effects],
        )

        try:
            await self._execute(result.effects)
        finally:
            await self._after(result.effects)

        return CommandOutcome.applied(result.effects)

    async def _prepare(self, command: SessionCommand) -> Action:
        """Turn a command into a reducer action, awaiting any external lookups."""
        state = self.session.state
        sender = state.get_player(command.sender.id) or command.sender

        if command.name == CommandName.PLAN:
            return await self._prepare_plan(command.argument)

        if command.name == CommandName.START:
            return Action.start()

        if command.name == CommandName.VOTE:
            return Action.vote(sender, parse_vote(command.argument), direct=command.private)

        if command.name == CommandName.SKIP:
            return Action.skip()

        if command.name == CommandName.PASS:
            return Action.pass_round()

        if command.name == CommandName.ESTIMATE:
            estimate = parse_estimate(command.argument)
            current = state.current_round
            if current is not None and state.tasklist is not None:
                await self.tasks.write_estimate(state.tasklist, current.task.id, estimate)
            return Action.final_vote(estimate)

        if command.name == CommandName.EXIT:
            return Action.remove_player(sender)

        raise InvalidInputError(f"Unknown command: {command.name.value}")

    async def _prepare_plan(self, argument: str) -> Action:
        if not argument.strip():
            raise InvalidTasklistError("Please supply a tasklist.")

        ref = parse_tasklist_reference(argument)
        if ref is None:
            raise InvalidTasklistError(
                f"Uh oh, I don't recognize that tasklist! Example: `{EXAMPLE_TASKLIST}`"
            )

        tasklist = await self.tasks.resolve_list(ref)
        tasks = await self.tasks.list_items(tasklist)
        logger.info("tasklist_resolved", tasklist=tasklist.id, tasks=len(tasks))
        return Action.plan(tasklist, tasks)

    async def _after(self, effects: list[Effect]) -> None:
        """Propagate roster changes and termination to the registry."""
        for effect in effects:
            if effect.effect_type == EffectType.PLAYER_LEFT and self.on_player_leave:
                await self.on_player_leave(self.session.session_id, effect["player"])

        if self.session.state.is_terminal:
            logger.info("session_finished", status=self.session.state.status.value)
            if self.on_finished:
                await self.on_finished(self.session.session_id)

    def _error_reply(self, command: SessionCommand, error: Exception) -> str:
        if isinstance(error, InvalidVoteError):
            return f"Sorry, I didn't understand that {command.sender.first_name}."
        if isinstance(error, InvalidEstimateError):
            return f"Sorry {command.sender.first_name}, please enter a positive numerical estimate."
        if isinstance(error, TaskProviderError):
            if command.name == CommandName.ESTIMATE:
                return f"Sorry, I couldn't save the estimate: {error.message}"
            return f"Sorry, I couldn't load that tasklist: {error.message}"
        return str(error)

    async def _reply(self, command: SessionCommand, content: str) -> None:
        if command.message is not None:
            await self.transport.reply(command.message, content)
        elif command.private:
            await self.transport.send_message_to_person(command.sender, content)
        else:
            await self.transport.send_message_to_room(self.session.room, content)
