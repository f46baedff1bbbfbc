"""
Reducer - Applies actions to session state.

The reducer is the single point of state transition.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> (new_state, effects)
- Validates before applying
- Returns ActionResult with success/failure
- Never performs I/O; effects describe what to announce
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import RoundQueue, SessionState, SessionStatus, Vote
from .action import Action, ActionType, ActionResult, ErrorCode
from .effects import Effect, EffectType
from .aggregation import tally


# Statuses in which each action type is accepted
ACCEPTED_STATUSES: dict[ActionType, set[SessionStatus]] = {
    ActionType.PLAN: {SessionStatus.WAITING},
    ActionType.START: {SessionStatus.READY},
    ActionType.VOTE: {SessionStatus.ROUND},
    ActionType.SKIP: {SessionStatus.ROUND, SessionStatus.MODERATION},
    ActionType.PASS: {SessionStatus.ROUND, SessionStatus.MODERATION},
    ActionType.FINAL_VOTE: {SessionStatus.ROUND, SessionStatus.MODERATION},
    ActionType.REMOVE_PLAYER: {
        SessionStatus.WAITING,
        SessionStatus.READY,
        SessionStatus.ROUND,
        SessionStatus.MODERATION,
    },
}


@dataclass
class Reducer:
    """
    Reducer applies actions to session state.

    Stateless - all state is in SessionState.
    """

    def apply(self, state: SessionState, action: Action) -> ActionResult:
        """
        Apply an action to the session state.

        Returns ActionResult with new state and ordered effects, or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code=ErrorCode.INVALID_STATE)

        handler = self._get_handler(action.action_type)
        return handler(state, action)

    def _validate_action(self, state: SessionState, action: Action) -> str | None:
        """
        Validate that an action is accepted in the current status.

        Returns error message if invalid, None if valid.
        """
        if state.is_terminal:
            return f"Session is {state.status.value} - no actions allowed"

        accepted = ACCEPTED_STATUSES.get(action.action_type, set())
        if state.status not in accepted:
            return f"Cannot {action.action_type.value} while session is {state.status.value}"

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.PLAN: self._handle_plan,
            ActionType.START: self._handle_start,
            ActionType.VOTE: self._handle_vote,
            ActionType.SKIP: self._handle_skip,
            ActionType.PASS: self._handle_pass,
            ActionType.FINAL_VOTE: self._handle_final_vote,
            ActionType.REMOVE_PLAYER: self._handle_remove_player,
        }
        return handlers[action_type]

    def _handle_plan(self, state: SessionState, action: Action) -> ActionResult:
        """Seed one round per task, in provider order."""
        tasklist = action.payload.tasklist
        tasks = action.payload.tasks or []

        if tasklist is None:
            return ActionResult.failure("No tasklist to plan", error_code=ErrorCode.EMPTY_TASKLIST)
        if not tasks:
            return ActionResult.failure(
                f"Tasklist {tasklist.title} has no tasks to estimate",
                error_code=ErrorCode.EMPTY_TASKLIST,
            )

        new_state = state._copy_with(
            status=SessionStatus.READY,
            rounds=RoundQueue.from_tasks(tasks),
            tasklist=tasklist,
            started_at=action.timestamp,
        )

        return ActionResult.success_with_state(
            new_state,
            effects=[Effect.of(EffectType.NEW_GAME, tasklist=tasklist, task_count=len(tasks))],
        )

    def _handle_start(self, state: SessionState, action: Action) -> ActionResult:
        """Open the first pending round."""
        if not state.rounds.pending:
            return ActionResult.failure("There are no rounds to play", error_code=ErrorCode.NO_ROUND)

        new_state = state._copy_with(status=SessionStatus.ROUND)
        return ActionResult.success_with_state(
            new_state,
            effects=[Effect.of(EffectType.NEXT_ROUND, round=new_state.current_round)],
        )

    def _handle_vote(self, state: SessionState, action: Action) -> ActionResult:
        """Upsert the person's vote in the current round."""
        player = action.payload.player
        if player is None or not state.has_player(player.id):
            return ActionResult.failure("Only players can vote", error_code=ErrorCode.NOT_A_PLAYER)

        current = state.current_round
        if current is None:
            return ActionResult.failure("There is no round in progress", error_code=ErrorCode.NO_ROUND)

        value = action.payload.vote
        previous = current.get_vote(player.id)
        effects: list[Effect] = []

        if previous:
            vote = previous.supersede(value, action.timestamp)
            effects.append(Effect.of(
                EffectType.VOTE_UPDATED, person=player, vote=vote, direct=action.payload.direct,
            ))
        else:
            vote = Vote(person=player.id, value=value, timestamp=action.timestamp)
            effects.append(Effect.of(
                EffectType.VOTE_COUNTED, person=player, vote=vote, direct=action.payload.direct,
            ))

        round_ = current.with_vote(vote)
        status = state.status

        if round_.vote_count >= len(state.players):
            # Everyone has voted
            status = SessionStatus.MODERATION
            effects.append(Effect.of(EffectType.ALL_VOTED, round=round_, tally=tally(round_)))

        new_state = state._copy_with(
            status=status,
            rounds=state.rounds.with_current(round_),
        )
        return ActionResult.success_with_state(new_state, effects=effects)

    def _handle_skip(self, state: SessionState, action: Action) -> ActionResult:
        """Move the current round to the skipped list."""
        current = state.current_round
        if current is None:
            return ActionResult.failure("There is no round in progress", error_code=ErrorCode.NO_ROUND)

        effects = [Effect.of(EffectType.SKIPPED, round=current)]
        new_state = state._copy_with(rounds=state.rounds.skip_current())
        return self._advance(new_state, action, effects)

    def _handle_pass(self, state: SessionState, action: Action) -> ActionResult:
        """Push the current round to the end of the queue."""
        current = state.current_round
        if current is None:
            return ActionResult.failure("There is no round in progress", error_code=ErrorCode.NO_ROUND)

        if len(state.rounds.pending) == 1:
            return ActionResult.failure(
                "This is the last round, you cannot pass!",
                error_code=ErrorCode.LAST_ROUND,
            )

        new_state = state._copy_with(
            status=SessionStatus.ROUND,
            rounds=state.rounds.rotate_current(),
        )
        return ActionResult.success_with_state(
            new_state,
            effects=[
                Effect.of(EffectType.PASSED, round=current),
                Effect.of(EffectType.NEXT_ROUND, round=new_state.current_round),
            ],
        )

    def _handle_final_vote(self, state: SessionState, action: Action) -> ActionResult:
        """Record the moderator's estimate and move the round to completed."""
        current = state.current_round
        if current is None:
            return ActionResult.failure("There is no round in progress", error_code=ErrorCode.NO_ROUND)

        estimate = action.payload.estimate
        new_state = state._copy_with(rounds=state.rounds.complete_current(estimate))
        return self._advance(new_state, action, [], final_vote=estimate)

    def _handle_remove_player(self, state: SessionState, action: Action) -> ActionResult:
        """Remove a player; the moderator leaving cancels the session."""
        player = action.payload.player
        if player is None or not state.has_player(player.id):
            return ActionResult.failure("Not a player of this session", error_code=ErrorCode.NOT_A_PLAYER)

        if state.is_moderator(player.id):
            new_state = state._copy_with(
                status=SessionStatus.CANCELLED,
                finished_at=action.timestamp,
            )
            return ActionResult.success_with_state(
                new_state,
                effects=[Effect.of(EffectType.MODERATOR_LEFT, player=player)],
            )

        new_state = state._copy_with(
            players=tuple(p for p in state.players if p.id != player.id),
        )
        return ActionResult.success_with_state(
            new_state,
            effects=[Effect.of(EffectType.PLAYER_LEFT, player=player)],
        )

    def _advance(
        self,
        state: SessionState,
        action: Action,
        effects: list,
        final_vote: float | None = None,
    ) -> ActionResult:
        """Open the next pending round, or complete the session when none is left."""
        if state.rounds.pending:
            new_state = state._copy_with(status=SessionStatus.ROUND)
            effects.append(Effect.of(
                EffectType.NEXT_ROUND, round=new_state.current_round, final_vote=final_vote,
            ))
        else:
            new_state = state._copy_with(
                status=SessionStatus.COMPLETE,
                finished_at=action.timestamp,
            )
            effects.append(Effect.of(EffectType.GAME_COMPLETE, final_vote=final_vote))

        return ActionResult.success_with_state(new_state, effects=effects)


def apply_action(state: SessionState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
