"""
Epoch Watcher - Polls the node's epoch clock and ceremony intervals.

dna_epoch is polled every second and dna_ceremonyIntervals every
minute. Subscribers are notified when a polled value differs from
the last one seen.
"""

from __future__ import annotations
import logging
from typing import Callable

from ..node.client import NodeClient, RpcError
from ..node.models import CeremonyIntervals, EpochInfo
from .scheduler import CancelHandle, Scheduler

logger = logging.getLogger(__name__)


class EpochWatcher:
    """Keeps the latest epoch and timing values from the node."""

    def __init__(
        self,
        client: NodeClient,
        scheduler: Scheduler,
        epoch_poll_ms: int = 1000,
        timing_poll_ms: int = 60000,
    ):
        self.client = client
        self.scheduler = scheduler
        self.epoch_poll_ms = epoch_poll_ms
        self.timing_poll_ms = timing_poll_ms

        self.epoch: EpochInfo | None = None
        self.timing: CeremonyIntervals | None = None

        self._epoch_listeners: list[Callable[[EpochInfo], None]] = []
        self._timing_listeners: list[Callable[[CeremonyIntervals], None]] = []
        self._handles: list[CancelHandle] = []

    def subscribe(
        self,
        on_epoch: Callable[[EpochInfo], None] | None = None,
        on_timing: Callable[[CeremonyIntervals], None] | None = None,
    ) -> None:
        if on_epoch:
            self._epoch_listeners.append(on_epoch)
        if on_timing:
            self._timing_listeners.append(on_timing)

    def start(self) -> None:
        if self._handles:
            return
        self._handles = [
            self.scheduler.schedule_repeating(self.epoch_poll_ms, self.poll_epoch, immediate=True),
            self.scheduler.schedule_repeating(self.timing_poll_ms, self.poll_timing, immediate=True),
        ]

    def stop(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles = []

    async def poll_epoch(self) -> EpochInfo | None:
        try:
            epoch = await self.client.fetch_epoch()
        except RpcError as e:
            logger.warning("Cannot read epoch: %s", e)
            return self.epoch
        self.set_epoch(epoch)
        return self.epoch

    async def poll_timing(self) -> CeremonyIntervals | None:
        try:
            timing = await self.client.fetch_ceremony_intervals()
        except RpcError as e:
            logger.warning("Cannot read ceremony intervals: %s", e)
            return self.timing
        self.set_timing(timing)
        return self.timing

    def set_epoch(self, epoch: EpochInfo | None) -> None:
        if epoch is None or epoch == self.epoch:
            return
        if self.epoch is None or epoch.current_period != self.epoch.current_period:
            logger.info("Epoch %s, period %s", epoch.epoch, epoch.current_period.value)
        self.epoch = epoch
        for listener in self._epoch_listeners:
            listener(epoch)

    def set_timing(self, timing: CeremonyIntervals | None) -> None:
        if timing is None or timing == self.timing:
            return
        self.timing = timing
        for listener in self._timing_listeners:
            listener(timing)
