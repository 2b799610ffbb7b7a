"""
Session Module - Runs one participant's validation ceremony.

A session represents one mounted ceremony:
- Created with a node client, a store and a scheduler
- Holds the current validation state
- Polls flips, counts down the phase, submits answers
- Closed when the client goes away

Sessions are EPHEMERAL:
- State lives in memory
- Only submitted answers may outlive it, through the store
"""

from .manager import ValidationSession, SessionState
from .scheduler import Scheduler, AsyncioScheduler, CancelHandle
from .store import (
    ValidationStore,
    InMemoryValidationStore,
    JsonFileValidationStore,
    create_store,
)
from .timer import SessionTimer, compute_remaining_seconds, displayed_seconds
from .epoch import EpochWatcher
from .effects import EffectRunner
from .submission import AlreadySubmittedError, prepare_answers, submit_answers

__all__ = [
    "ValidationSession",
    "SessionState",
    "Scheduler",
    "AsyncioScheduler",
    "CancelHandle",
    "ValidationStore",
    "InMemoryValidationStore",
    "JsonFileValidationStore",
    "create_store",
    "SessionTimer",
    "compute_remaining_seconds",
    "displayed_seconds",
    "EpochWatcher",
    "EffectRunner",
    "AlreadySubmittedError",
    "prepare_answers",
    "submit_answers",
]
