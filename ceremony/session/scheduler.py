"""
Scheduler - Timers and intervals with cancel handles.

The session never calls asyncio timers directly; it asks a Scheduler
and keeps the returned handles so teardown can cancel all of them.
Callbacks may be plain functions or coroutine functions.
"""

from __future__ import annotations
import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]


@dataclass
class CancelHandle:
    """Handle to a scheduled callback."""
    interval_ms: int | None = None
    cancelled: bool = False
    _timer: Any = field(default=None, repr=False)

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class Scheduler(ABC):
    """
    Abstract scheduler.

    Implementations must never run a callback synchronously from
    inside schedule_*; even immediate callbacks fire on a later turn.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @abstractmethod
    def schedule_repeating(
        self, interval_ms: int, callback: Callback, immediate: bool = False
    ) -> CancelHandle:
        """Run callback every interval_ms (first run right away if immediate)."""
        pass

    @abstractmethod
    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        """Run callback once after delay_ms."""
        pass

    def _invoke(self, callback: Callback) -> None:
        """Run a callback; coroutines become tasks on the running loop."""
        try:
            result = callback()
        except Exception:
            logger.exception("Scheduled callback %r failed", callback)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Scheduled task failed", exc_info=task.exception())


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        super().__init__()
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        handle = CancelHandle()

        def fire():
            if handle.cancelled:
                return
            handle._timer = None
            self._invoke(callback)

        handle._timer = self.loop.call_later(delay_ms / 1000, fire)
        return handle

    def schedule_repeating(
        self, interval_ms: int, callback: Callback, immediate: bool = False
    ) -> CancelHandle:
        handle = CancelHandle(interval_ms=interval_ms)

        def fire():
            if handle.cancelled:
                return
            handle._timer = self.loop.call_later(interval_ms / 1000, fire)
            self._invoke(callback)

        delay = 0 if immediate else interval_ms / 1000
        handle._timer = self.loop.call_later(delay, fire)
        return handle
