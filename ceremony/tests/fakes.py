"""
Test doubles for the session layer.

- FakeScheduler: manual clock, fires callbacks only when advanced
- FakeNodeClient: in-memory node with canned epoch, hashes and flips
"""

from __future__ import annotations
import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..engine_core.codec import encode_flip
from ..engine_core.state import EpochPeriod, Flip, SessionType
from ..node.client import RpcError
from ..node.models import CeremonyIntervals, EpochInfo, FlipHashItem, FlipPayload
from ..session.scheduler import Callback, CancelHandle, Scheduler

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def flip_hex(seed: int = 0) -> str:
    """A well-formed payload with four pics and two orders."""
    pics = [bytes([seed, i]) for i in range(4)]
    return encode_flip(pics, [[0, 1, 2, 3], [3, 2, 1, 0]])


def loaded_flip(flip_hash: str, **kwargs) -> Flip:
    """A flip that is ready and decoded."""
    return Flip(
        hash=flip_hash,
        ready=True,
        loaded=True,
        pics=[b"\x00", b"\x01"],
        orders=[[0, 1], [1, 0]],
        **kwargs,
    )


def make_epoch(
    epoch: int = 10,
    period: EpochPeriod = EpochPeriod.SHORT_SESSION,
    start: datetime | None = T0,
) -> EpochInfo:
    return EpochInfo(
        epoch=epoch,
        current_period=period,
        next_validation=start,
        current_validation_start=start,
    )


def make_timing(short: int = 120, long: int = 1800) -> CeremonyIntervals:
    return CeremonyIntervals(short_session_duration=short, long_session_duration=long)


@dataclass
class _Entry:
    due: int
    seq: int
    callback: Callback
    handle: CancelHandle
    interval_ms: int | None = None


class FakeScheduler(Scheduler):
    """
    Scheduler driven by a manual clock.

    Usage:
        scheduler = FakeScheduler()
        scheduler.schedule_once(1000, callback)
        scheduler.advance(1000)   # callback fires here
    """

    def __init__(self):
        super().__init__()
        self.now = 0
        self._entries: list[_Entry] = []
        self._seq = itertools.count()

    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        handle = CancelHandle()
        self._entries.append(_Entry(self.now + delay_ms, next(self._seq), callback, handle))
        return handle

    def schedule_repeating(
        self, interval_ms: int, callback: Callback, immediate: bool = False
    ) -> CancelHandle:
        handle = CancelHandle(interval_ms=interval_ms)
        due = self.now if immediate else self.now + interval_ms
        self._entries.append(_Entry(due, next(self._seq), callback, handle, interval_ms))
        return handle

    @property
    def pending(self) -> list[_Entry]:
        return [e for e in self._entries if not e.handle.cancelled]

    def advance(self, ms: int = 0) -> None:
        """Move the clock forward, firing everything that falls due in order."""
        target = self.now + ms
        while True:
            self._entries = self.pending
            due = [e for e in self._entries if e.due <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e.due, e.seq))
            self.now = entry.due
            if entry.interval_ms is None:
                self._entries.remove(entry)
            else:
                entry.due += entry.interval_ms
                entry.seq = next(self._seq)
            self._invoke(entry.callback)
        self.now = target

    def run_pending(self) -> None:
        self.advance(0)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def settle(*parties) -> None:
    """Run every task the session and scheduler have started until none is left."""
    await asyncio.sleep(0)
    while any(party._tasks for party in parties):
        for party in parties:
            await party.drain()


class FakeNodeClient:
    """In-memory node. Methods listed in fail raise RpcError."""

    def __init__(
        self,
        epoch: EpochInfo | None = None,
        timing: CeremonyIntervals | None = None,
        hashes: dict[SessionType, list[FlipHashItem] | None] | None = None,
        flips: dict[str, FlipPayload] | None = None,
    ):
        self.epoch = epoch
        self.timing = timing
        self.hashes = hashes or {}
        self.flips = flips or {}
        self.fail: set[str] = set()
        self.calls: list[str] = []
        self.submissions: list[tuple[SessionType, list[dict[str, Any]], int, int]] = []

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail:
            raise RpcError("node unavailable", method=method)

    def count(self, method: str) -> int:
        return self.calls.count(method)

    async def fetch_epoch(self) -> EpochInfo | None:
        self._record("dna_epoch")
        return self.epoch

    async def fetch_ceremony_intervals(self) -> CeremonyIntervals | None:
        self._record("dna_ceremonyIntervals")
        return self.timing

    async def fetch_flip_hashes(self, session_type: SessionType) -> list[FlipHashItem] | None:
        self._record(f"flip_{session_type.value}Hashes")
        return self.hashes.get(session_type)

    async def fetch_flip(self, flip_hash: str) -> FlipPayload | None:
        self._record("flip_get")
        return self.flips.get(flip_hash)

    async def submit_short_answers(self, answers, nonce: int, epoch: int) -> Any:
        self._record("flip_submitShortAnswers")
        self.submissions.append((SessionType.SHORT, answers, nonce, epoch))
        return True

    async def submit_long_answers(self, answers, nonce: int, epoch: int) -> Any:
        self._record("flip_submitLongAnswers")
        self.submissions.append((SessionType.LONG, answers, nonce, epoch))
        return True
