"""
Reducer - Applies actions to the validation state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> (new_state, effects)
- Never performs I/O; fetches are returned as effects
- Unknown action types are integration bugs and raise immediately
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action, ActionType, ActionResult
from .effects import FetchFlips
from .flips import can_submit, decode_flips, reorder_flips
from .state import AnswerType, SessionType, ValidationState


class UnhandledActionError(ValueError):
    """Raised when the reducer receives an action type it does not know."""


@dataclass
class Reducer:
    """
    Reducer applies actions to validation state.

    Stateless - all state is in ValidationState.
    """

    def apply(self, state: ValidationState, action: Action) -> ActionResult:
        """
        Apply an action to the validation state.

        Returns ActionResult with the new state and any effects.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            raise UnhandledActionError(f"Unhandled action type: {action.action_type}")
        return handler(state, action)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.LOAD_VALIDATION: self._handle_load_validation,
            ActionType.SUBMIT_SHORT_ANSWERS: self._handle_submit_short_answers,
            ActionType.SUBMIT_LONG_ANSWERS: self._handle_submit_long_answers,
            ActionType.RESET_EPOCH: self._handle_reset_epoch,
            ActionType.START_FETCH_FLIPS: self._handle_start_fetch_flips,
            ActionType.FETCH_FLIPS_SUCCEEDED: self._handle_fetch_flips_succeeded,
            ActionType.FETCH_FLIPS_FAILED: self._handle_fetch_flips_failed,
            ActionType.PREV: self._handle_prev,
            ActionType.NEXT: self._handle_next,
            ActionType.PICK: self._handle_pick,
            ActionType.ANSWER: self._handle_answer,
            ActionType.REPORT_ABUSE: self._handle_report_abuse,
            ActionType.SHOW_EXTRA_FLIPS: self._handle_show_extra_flips,
        }
        return handlers.get(action_type)

    def _handle_load_validation(self, state: ValidationState, action: Action) -> ActionResult:
        """Overlay persisted fields onto the current state."""
        validation = action.payload.validation
        if validation is None:
            return ActionResult(new_state=state)

        changes = {"epoch": validation.epoch}
        if validation.short_answers:
            changes["short_answers"] = list(validation.short_answers)
            changes["short_answers_submitted"] = True
        if validation.long_answers:
            changes["long_answers"] = list(validation.long_answers)
            changes["long_answers_submitted"] = True

        return ActionResult(
            new_state=state._copy_with(**changes),
            state_changes=[f"Restored validation for epoch {validation.epoch}"],
        )

    def _handle_submit_short_answers(self, state: ValidationState, action: Action) -> ActionResult:
        new_state = state.with_ceremony_reset(
            short_answers=action.payload.answers or [],
            epoch=action.payload.epoch,
            short_answers_submitted=True,
        )
        return ActionResult(new_state=new_state, state_changes=["Short answers submitted"])

    def _handle_submit_long_answers(self, state: ValidationState, action: Action) -> ActionResult:
        new_state = state.with_ceremony_reset(
            long_answers=action.payload.answers or [],
            epoch=action.payload.epoch,
            long_answers_submitted=True,
        )
        return ActionResult(new_state=new_state, state_changes=["Long answers submitted"])

    def _handle_reset_epoch(self, state: ValidationState, action: Action) -> ActionResult:
        new_state = state.with_ceremony_reset(
            short_answers=[],
            long_answers=[],
            epoch=action.payload.epoch,
            short_answers_submitted=False,
            long_answers_submitted=False,
        )
        return ActionResult(
            new_state=new_state,
            state_changes=[f"Epoch reset to {action.payload.epoch}"],
        )

    def _handle_start_fetch_flips(self, state: ValidationState, action: Action) -> ActionResult:
        """Mark a fetch cycle outstanding and request it."""
        new_state = state._copy_with(loading=True)
        effects = []
        if action.payload.session_type is not None:
            effects.append(
                FetchFlips(session_type=action.payload.session_type, known_flips=state.flips)
            )
        return ActionResult(new_state=new_state, effects=effects)

    def _handle_fetch_flips_succeeded(self, state: ValidationState, action: Action) -> ActionResult:
        """
        Merge fetched data into the flip list.

        During the long session only flips the node reports as ready
        are shown.
        """
        flips = decode_flips(action.payload.data or [], state.flips)
        if action.payload.session_type == SessionType.LONG:
            flips = [flip._copy_with(hidden=not flip.ready) for flip in flips]
        flips = reorder_flips(flips)

        new_state = state._copy_with(
            flips=flips,
            loading=False,
            ready=all(f.ready or f.failed for f in flips),
            error=None,
        )
        return ActionResult(new_state=new_state)

    def _handle_fetch_flips_failed(self, state: ValidationState, action: Action) -> ActionResult:
        new_state = state._copy_with(loading=True, error=action.payload.error)
        return ActionResult(new_state=new_state)

    def _handle_prev(self, state: ValidationState, action: Action) -> ActionResult:
        idx = max(state.current_index - 1, 0)
        return ActionResult(
            new_state=state._copy_with(
                current_index=idx,
                can_submit=can_submit(state.flips, idx),
            )
        )

    def _handle_next(self, state: ValidationState, action: Action) -> ActionResult:
        idx = min(state.current_index + 1, len(state.flips) - 1)
        return ActionResult(
            new_state=state._copy_with(
                current_index=idx,
                can_submit=can_submit(state.flips, idx),
            )
        )

    def _handle_pick(self, state: ValidationState, action: Action) -> ActionResult:
        # Bounds are the caller's responsibility
        idx = action.payload.index
        return ActionResult(
            new_state=state._copy_with(
                current_index=idx,
                can_submit=can_submit(state.flips, idx),
            )
        )

    def _handle_answer(self, state: ValidationState, action: Action) -> ActionResult:
        flips = self._with_current_answer(state, action.payload.option)
        return ActionResult(
            new_state=state._copy_with(
                flips=flips,
                can_submit=can_submit(flips, state.current_index),
            )
        )

    def _handle_report_abuse(self, state: ValidationState, action: Action) -> ActionResult:
        """Answer Inappropriate and move on within the visible flips."""
        flips = self._with_current_answer(state, AnswerType.INAPPROPRIATE)
        visible_count = len([f for f in flips if not f.hidden])
        idx = min(state.current_index + 1, visible_count - 1)
        return ActionResult(
            new_state=state._copy_with(
                flips=flips,
                current_index=idx,
                can_submit=can_submit(flips, idx),
            )
        )

    def _handle_show_extra_flips(self, state: ValidationState, action: Action) -> ActionResult:
        """
        Replace flips that never became ready with extra flips.

        1. Every flip that is not ready is marked failed
        2. Hidden flips are opened while the budget (failed count) lasts;
           the budget and opened count move once per hidden flip visited
        3. Walking backwards, failed flips are hidden while the opened
           count lasts
        """
        flips = [flip._copy_with(failed=not flip.ready) for flip in state.flips]
        available_extra_flips = len([f for f in flips if f.failed])
        opened_flips_count = 0

        promoted = []
        for flip in flips:
            if not flip.hidden:
                promoted.append(flip)
                continue
            should_become_available = flip.is_loaded and available_extra_flips > 0
            available_extra_flips -= 1
            opened_flips_count += 1
            promoted.append(flip._copy_with(hidden=not should_become_available))
        flips = promoted

        for i in range(len(flips) - 1, -1, -1):
            if opened_flips_count > 0 and flips[i].failed:
                opened_flips_count -= 1
                flips[i] = flips[i]._copy_with(hidden=True)

        return ActionResult(
            new_state=state._copy_with(
                can_submit=can_submit(flips, state.current_index),
                flips=reorder_flips(flips),
                ready=True,
            ),
            state_changes=["Extra flips shown"],
        )

    def _with_current_answer(self, state: ValidationState, option: AnswerType | None):
        idx = state.current_index
        return [
            flip._copy_with(answer=option) if i == idx else flip
            for i, flip in enumerate(state.flips)
        ]


def apply_action(state: ValidationState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
