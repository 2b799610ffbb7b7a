"""
Engine Core - Deterministic validation state management.

The engine is the pure part of the ceremony:
1. Decodes flip payloads
2. Merges fetched flips into the known list
3. Applies actions via the reducer
4. Describes side effects for the session to run
"""

from .state import (
    AnswerType,
    EpochPeriod,
    Flip,
    PersistedValidation,
    SessionType,
    ValidationState,
    has_answer,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .codec import DecodedFlip, FlipDecodeError, decode_flip, encode_flip
from .flips import can_submit, decode_flips, reorder_flips
from .effects import Effect, FetchFlips, SubmitAnswers
from .reducer import Reducer, UnhandledActionError, apply_action

__all__ = [
    "AnswerType",
    "EpochPeriod",
    "Flip",
    "PersistedValidation",
    "SessionType",
    "ValidationState",
    "has_answer",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "DecodedFlip",
    "FlipDecodeError",
    "decode_flip",
    "encode_flip",
    "can_submit",
    "decode_flips",
    "reorder_flips",
    "Effect",
    "FetchFlips",
    "SubmitAnswers",
    "Reducer",
    "UnhandledActionError",
    "apply_action",
]
