"""
Session Timer - Seconds left in the current judging phase.

The remaining time is derived from the epoch clock and ceremony
intervals, then counted down locally once per tick. Any change of
epoch or timing recomputes it from scratch.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..config import GAP
from ..engine_core.state import EpochPeriod, SessionType
from ..node.models import CeremonyIntervals, EpochInfo


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def phase_start(epoch: EpochInfo) -> datetime | None:
    """Validation start, or the next validation when no ceremony is running."""
    if epoch.current_period == EpochPeriod.NONE or epoch.current_validation_start is None:
        return epoch.next_validation
    return epoch.current_validation_start


def phase_duration(epoch: EpochInfo, timing: CeremonyIntervals, gap: int = GAP) -> int:
    """Seconds from validation start to the end of the current phase, minus the gap."""
    long_session = (
        0 if epoch.current_period == EpochPeriod.SHORT_SESSION
        else timing.long_session_duration
    )
    return timing.short_session_duration + long_session - gap


def compute_remaining_seconds(
    epoch: EpochInfo,
    timing: CeremonyIntervals,
    now: datetime | None = None,
    gap: int = GAP,
) -> int | None:
    """
    Remaining seconds in the current phase.

    max(0, min(finish - now, duration)); None when the epoch carries
    no usable start timestamp.
    """
    start = phase_start(epoch)
    if start is None:
        return None

    now = _as_utc(now or datetime.now(timezone.utc))
    duration = phase_duration(epoch, timing, gap)
    finish = _as_utc(start) + timedelta(seconds=duration)
    diff = int((finish - now).total_seconds())
    return max(min(diff, duration), 0)


def displayed_seconds(
    seconds: int | None,
    epoch: EpochInfo | None,
    timing: CeremonyIntervals | None,
    session_type: SessionType,
) -> int | None:
    """
    Countdown shown for a phase.

    Once short answers are in, the long session is shown while the node
    is still in the short session; its countdown runs on through the
    whole long session.
    """
    if seconds is None or epoch is None or timing is None:
        return seconds
    if session_type == SessionType.LONG and epoch.current_period == EpochPeriod.SHORT_SESSION:
        return seconds + timing.long_session_duration
    return seconds


class SessionTimer:
    """
    Countdown for the current phase.

    Usage:
        timer = SessionTimer()
        timer.subscribe(on_seconds)
        timer.recompute(epoch, timing)
        # every second
        timer.tick()
    """

    def __init__(self, gap: int = GAP, clock: Callable[[], datetime] | None = None):
        self.gap = gap
        self.seconds: int | None = None
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: list[Callable[[int | None], None]] = []

    @property
    def is_phase_ending(self) -> bool:
        """True on the last second before the phase boundary."""
        return self.seconds == 1

    def subscribe(self, listener: Callable[[int | None], None]) -> None:
        self._listeners.append(listener)

    def recompute(self, epoch: EpochInfo | None, timing: CeremonyIntervals | None) -> int | None:
        """Recompute from scratch; no-op until both epoch and timing are known."""
        if epoch is None or timing is None:
            return self.seconds
        self._set(compute_remaining_seconds(epoch, timing, now=self._clock(), gap=self.gap))
        return self.seconds

    def tick(self) -> None:
        """Count down one second while seconds is set and non-zero."""
        if self.seconds:
            self._set(self.seconds - 1)

    def _set(self, seconds: int | None) -> None:
        self.seconds = seconds
        for listener in self._listeners:
            listener(seconds)
