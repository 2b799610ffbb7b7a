"""
Validation State - Flips and session-wide ceremony progress.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: answer payloads are plain dicts, ready for the wire
- Two layers: ceremony progress (reset every phase) and
  epoch-scoped answers/flags (reset only when the epoch changes)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any


class EpochPeriod(Enum):
    """Ceremony periods reported by the node's epoch clock."""
    NONE = "None"
    FLIP_LOTTERY = "FlipLottery"
    SHORT_SESSION = "ShortSession"
    LONG_SESSION = "LongSession"
    AFTER_LONG_SESSION = "AfterLongSession"


class AnswerType(IntEnum):
    """Answer codes as the node expects them on submission."""
    NONE = 0
    LEFT = 1
    RIGHT = 2
    INAPPROPRIATE = 3


class SessionType(Enum):
    """The two sequential judging phases."""
    SHORT = "short"
    LONG = "long"


def has_answer(answer: Any) -> bool:
    """True when a flip answer has been recorded (0 counts as an answer)."""
    return isinstance(answer, int) and not isinstance(answer, bool)


@dataclass
class Flip:
    """
    A flip as the session sees it.

    Per phase a flip is exactly one of:
    - resolved: ready and loaded (decoded)
    - failed: decode or fetch gave up
    - pending: anything else
    """
    hash: str
    hidden: bool = False
    ready: bool = False
    loaded: bool = False
    failed: bool = False
    pics: list[bytes] | None = None
    orders: list[list[int]] | None = None
    answer: AnswerType | None = None

    @property
    def is_loaded(self) -> bool:
        return self.ready and self.loaded

    @property
    def is_resolved(self) -> bool:
        """Terminal for this phase: never re-fetched or re-decoded."""
        return self.is_loaded or self.failed

    @property
    def has_answer(self) -> bool:
        return has_answer(self.answer)

    def _copy_with(self, **kwargs) -> Flip:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)


@dataclass
class PersistedValidation:
    """
    What the local store keeps for one epoch.

    Answer payloads are the exact lists sent to the node;
    None means that phase was never submitted.
    """
    epoch: int | None = None
    short_answers: list[dict[str, Any]] | None = None
    long_answers: list[dict[str, Any]] | None = None


@dataclass
class ValidationState:
    """
    Complete validation state at a point in time.

    All state changes go through the reducer.
    """
    epoch: int | None = None

    # Ceremony progress
    flips: list[Flip] = field(default_factory=list)
    current_index: int = 0
    loading: bool = True
    ready: bool = False
    can_submit: bool = False

    # Epoch-scoped answers
    short_answers_submitted: bool = False
    long_answers_submitted: bool = False
    short_answers: list[dict[str, Any]] = field(default_factory=list)
    long_answers: list[dict[str, Any]] = field(default_factory=list)

    # Last fetch failure, if any
    error: str | None = None

    @property
    def visible_flips(self) -> list[Flip]:
        return [f for f in self.flips if not f.hidden]

    @property
    def current_flip(self) -> Flip | None:
        if 0 <= self.current_index < len(self.flips):
            return self.flips[self.current_index]
        return None

    @property
    def has_some_answer(self) -> bool:
        return any(f.has_answer for f in self.flips)

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.flips) - 1

    @property
    def all_submitted(self) -> bool:
        return self.short_answers_submitted and self.long_answers_submitted

    def submitted(self, session_type: SessionType) -> bool:
        if session_type == SessionType.SHORT:
            return self.short_answers_submitted
        return self.long_answers_submitted

    def get_flip(self, flip_hash: str) -> Flip | None:
        for flip in self.flips:
            if flip.hash == flip_hash:
                return flip
        return None

    def with_ceremony_reset(self, **kwargs) -> ValidationState:
        """Return state with ceremony progress back at start-of-phase defaults."""
        return self._copy_with(
            flips=[],
            loading=True,
            current_index=0,
            can_submit=False,
            ready=False,
            **kwargs,
        )

    def _copy_with(self, **kwargs) -> ValidationState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
