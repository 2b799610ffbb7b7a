"""
Pytest fixtures for Ceremony tests.
"""

import pytest

from ..config import CeremonyConfig
from ..engine_core.state import PersistedValidation, SessionType, ValidationState
from ..node.models import FlipHashItem, FlipPayload
from ..session import EpochWatcher, InMemoryValidationStore, SessionTimer, ValidationSession
from .fakes import (
    FakeNodeClient,
    FakeScheduler,
    T0,
    flip_hex,
    loaded_flip,
    make_epoch,
    make_timing,
)


@pytest.fixture
def two_flip_state() -> ValidationState:
    """Two loaded, unanswered flips with the first one current."""
    return ValidationState(
        epoch=10,
        flips=[loaded_flip("a"), loaded_flip("b")],
        loading=False,
        ready=True,
    )


@pytest.fixture
def config() -> CeremonyConfig:
    """Config with explicit values, independent of the environment."""
    return CeremonyConfig(
        node_url="http://node.test",
        extra_flips_delay_ms=35000,
        fetch_interval_ms=1000,
        epoch_poll_ms=1000,
        timing_poll_ms=60000,
        tick_ms=1000,
        gap=10,
        persist_answers=False,
        store_path=None,
    )


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def node() -> FakeNodeClient:
    """
    Node in the short session of epoch 10.

    Three regular flips are ready; two extra flips wait hidden.
    """
    short_hashes = [
        FlipHashItem(hash="0xa", ready=True),
        FlipHashItem(hash="0xb", ready=True),
        FlipHashItem(hash="0xc", ready=True),
        FlipHashItem(hash="0xx1", extra=True, ready=True),
        FlipHashItem(hash="0xx2", extra=True, ready=True),
    ]
    long_hashes = [
        FlipHashItem(hash="0xa", ready=True),
        FlipHashItem(hash="0xl1", ready=False),
    ]
    flips = {
        item.hash: FlipPayload(hex=flip_hex(seed))
        for seed, item in enumerate(short_hashes)
    }
    return FakeNodeClient(
        epoch=make_epoch(10),
        timing=make_timing(),
        hashes={SessionType.SHORT: short_hashes, SessionType.LONG: long_hashes},
        flips=flips,
    )


@pytest.fixture
def store() -> InMemoryValidationStore:
    """Store already tracking epoch 10."""
    return InMemoryValidationStore(PersistedValidation(epoch=10))


@pytest.fixture
def clock():
    """Mutable clock; set clock.now to move it."""
    class Clock:
        now = T0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def session(node, store, scheduler, config, clock) -> ValidationSession:
    """
    Unmounted session whose watcher already knows the node's epoch
    and timing, so the first flip poll targets the short session.
    """
    watcher = EpochWatcher(
        node,
        scheduler,
        epoch_poll_ms=config.epoch_poll_ms,
        timing_poll_ms=config.timing_poll_ms,
    )
    watcher.set_epoch(node.epoch)
    watcher.set_timing(node.timing)
    return ValidationSession(
        node,
        store,
        scheduler,
        config=config,
        watcher=watcher,
        timer=SessionTimer(gap=config.gap, clock=clock),
    )
