"""
Action System - Actions, payloads, and results.

Actions represent:
1. User judgments (answer, report, navigation)
2. Fetch lifecycle events (start, succeeded, failed)
3. Session lifecycle events (load, submit, epoch reset, extra flips)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import AnswerType, PersistedValidation, SessionType, ValidationState


class ActionType(Enum):
    """Types of transitions the validation reducer understands."""
    # Session lifecycle
    LOAD_VALIDATION = "load_validation"
    RESET_EPOCH = "reset_epoch"
    SUBMIT_SHORT_ANSWERS = "submit_short_answers"
    SUBMIT_LONG_ANSWERS = "submit_long_answers"

    # Fetch lifecycle
    START_FETCH_FLIPS = "start_fetch_flips"
    FETCH_FLIPS_SUCCEEDED = "fetch_flips_succeeded"
    FETCH_FLIPS_FAILED = "fetch_flips_failed"

    # User actions
    ANSWER = "answer"
    NEXT = "next"
    PREV = "prev"
    PICK = "pick"
    REPORT_ABUSE = "report_abuse"

    # Timer-driven
    SHOW_EXTRA_FLIPS = "show_extra_flips"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    This is a generic container; the reducer reads what it needs.
    """
    # Restore / epoch
    validation: PersistedValidation | None = None
    epoch: int | None = None

    # Fetch results
    data: list[dict[str, Any]] | None = None
    session_type: SessionType | None = None
    error: str | None = None

    # Navigation and judgment
    index: int | None = None
    option: AnswerType | None = None

    # Submission
    answers: list[dict[str, Any]] | None = None


@dataclass
class Action:
    """A transition to be applied to the validation state."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def load_validation(cls, validation: PersistedValidation) -> Action:
        return cls(ActionType.LOAD_VALIDATION, ActionPayload(validation=validation))

    @classmethod
    def reset_epoch(cls, epoch: int) -> Action:
        return cls(ActionType.RESET_EPOCH, ActionPayload(epoch=epoch))

    @classmethod
    def start_fetch_flips(cls, session_type: SessionType) -> Action:
        return cls(ActionType.START_FETCH_FLIPS, ActionPayload(session_type=session_type))

    @classmethod
    def fetch_flips_succeeded(
        cls, data: list[dict[str, Any]], session_type: SessionType
    ) -> Action:
        return cls(
            ActionType.FETCH_FLIPS_SUCCEEDED,
            ActionPayload(data=data, session_type=session_type),
        )

    @classmethod
    def fetch_flips_failed(cls, error: str) -> Action:
        return cls(ActionType.FETCH_FLIPS_FAILED, ActionPayload(error=error))

    @classmethod
    def answer(cls, option: AnswerType) -> Action:
        return cls(ActionType.ANSWER, ActionPayload(option=AnswerType(option)))

    @classmethod
    def next(cls) -> Action:
        return cls(ActionType.NEXT)

    @classmethod
    def prev(cls) -> Action:
        return cls(ActionType.PREV)

    @classmethod
    def pick(cls, index: int) -> Action:
        return cls(ActionType.PICK, ActionPayload(index=index))

    @classmethod
    def report_abuse(cls) -> Action:
        return cls(ActionType.REPORT_ABUSE)

    @classmethod
    def show_extra_flips(cls) -> Action:
        return cls(ActionType.SHOW_EXTRA_FLIPS)

    @classmethod
    def submit_answers(
        cls,
        session_type: SessionType,
        answers: list[dict[str, Any]],
        epoch: int | None,
    ) -> Action:
        """Factory for the transition that finalizes a successful submission."""
        action_type = (
            ActionType.SUBMIT_SHORT_ANSWERS
            if session_type == SessionType.SHORT
            else ActionType.SUBMIT_LONG_ANSWERS
        )
        return cls(
            action_type,
            ActionPayload(answers=answers, epoch=epoch, session_type=session_type),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - The new state
    - Effects to run outside the reducer (fetches)
    - Human-readable changes, for logging
    """
    new_state: ValidationState
    effects: list[Any] = field(default_factory=list)  # Effect instances
    state_changes: list[str] = field(default_factory=list)
