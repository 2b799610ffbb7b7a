"""
Effects - Side-effect descriptions returned by the reducer.

The reducer never does I/O. When a transition needs the network,
it returns an effect; the session's effect runner executes it and
feeds the outcome back as new actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .state import Flip, SessionType


@dataclass
class Effect:
    """Base class for effects."""


@dataclass
class FetchFlips(Effect):
    """
    Enumerate flip hashes for a session type and fetch pending flips.

    known_flips is the flip list at the time the fetch was requested;
    resolved flips in it are not fetched again.
    """
    session_type: SessionType
    known_flips: list[Flip] = field(default_factory=list)


@dataclass
class SubmitAnswers(Effect):
    """Submit answers for the given flips and phase."""
    session_type: SessionType
    flips: list[Flip] = field(default_factory=list)
    epoch: int | None = None
