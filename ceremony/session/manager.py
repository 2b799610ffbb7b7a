"""
Validation Session - The scope that owns one participant's ceremony.

LIFECYCLE:
1. Session is created with its collaborators (node client, store, scheduler)
2. mount():
   - persisted answers are loaded from the store
   - the epoch watcher starts polling the node
   - the countdown ticks every second
   - flips are polled every second until they are all ready
   - extra-flip promotion is scheduled
3. During the ceremony:
   - a new epoch resets the store and the state
   - the user answers, navigates and submits through this object
   - one second before the short session ends, recorded answers
     are submitted automatically
   - a submission or epoch reset drops the results of fetches
     started before it
4. close(): every timer is cancelled; late completions are ignored

All transitions run on the event loop thread, one at a time.
"""

from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Any, Coroutine

from ..config import CeremonyConfig
from ..engine_core.action import Action, ActionType
from ..engine_core.effects import Effect, SubmitAnswers
from ..engine_core.reducer import Reducer
from ..engine_core.state import AnswerType, EpochPeriod, SessionType, ValidationState
from ..node.client import NodeClient, RpcError
from ..node.models import CeremonyIntervals, EpochInfo
from .effects import EffectRunner
from .epoch import EpochWatcher
from .scheduler import CancelHandle, Scheduler
from .store import ValidationStore
from .submission import AlreadySubmittedError
from .timer import SessionTimer

logger = logging.getLogger(__name__)

PHASE_RESETS = {
    ActionType.SUBMIT_SHORT_ANSWERS,
    ActionType.SUBMIT_LONG_ANSWERS,
    ActionType.RESET_EPOCH,
}


class SessionState(Enum):
    """State of a validation session."""
    CREATED = "created"  # Built, not yet mounted
    ACTIVE = "active"  # Mounted, timers running
    CLOSED = "closed"  # Torn down


class ValidationSession:
    """
    A mounted validation ceremony.

    Usage:
        session = ValidationSession(client, store, AsyncioScheduler())
        session.mount()

        session.answer(AnswerType.LEFT)
        session.next()
        await session.submit()

        session.close()
    """

    def __init__(
        self,
        client: NodeClient,
        store: ValidationStore,
        scheduler: Scheduler,
        config: CeremonyConfig | None = None,
        watcher: EpochWatcher | None = None,
        timer: SessionTimer | None = None,
    ):
        if client is None:
            raise ValueError("ValidationSession requires a node client")
        if store is None:
            raise ValueError("ValidationSession requires a validation store")
        if scheduler is None:
            raise ValueError("ValidationSession requires a scheduler")

        self.config = config or CeremonyConfig.from_env()
        self.client = client
        self.store = store
        self.scheduler = scheduler
        self.reducer = Reducer()
        self.runner = EffectRunner(client)
        self.watcher = watcher or EpochWatcher(
            client,
            scheduler,
            epoch_poll_ms=self.config.epoch_poll_ms,
            timing_poll_ms=self.config.timing_poll_ms,
        )
        self.timer = timer or SessionTimer(gap=self.config.gap)

        self.status = SessionState.CREATED
        self._state = ValidationState()
        self._handles: list[CancelHandle] = []
        self._poll_handle: CancelHandle | None = None
        self._extra_flips_handle: CancelHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._submitting: set[SessionType] = set()
        self._auto_submitted_epoch: int | None = None
        # Bumped whenever the flip list starts over
        self._phase = 0

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def epoch(self) -> EpochInfo | None:
        return self.watcher.epoch

    @property
    def timing(self) -> CeremonyIntervals | None:
        return self.watcher.timing

    @property
    def seconds(self) -> int | None:
        return self.timer.seconds

    @property
    def is_active(self) -> bool:
        return self.status == SessionState.ACTIVE

    @property
    def is_short_session(self) -> bool:
        return self.epoch is not None and self.epoch.current_period == EpochPeriod.SHORT_SESSION

    @property
    def current_session_type(self) -> SessionType:
        """Phase the flip queue should be fetched for."""
        if self.is_short_session and not self._state.short_answers_submitted:
            return SessionType.SHORT
        return SessionType.LONG

    @property
    def submit_session_type(self) -> SessionType:
        """Phase a manual submission applies to."""
        if not self._state.short_answers_submitted:
            return SessionType.SHORT
        return SessionType.LONG

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def mount(self) -> None:
        """Load persisted answers and start every timer of the session."""
        if self.status != SessionState.CREATED:
            raise RuntimeError(f"Cannot mount a session that is {self.status.value}")

        self.status = SessionState.ACTIVE
        self.dispatch(Action.load_validation(self.store.get()))

        self.timer.subscribe(self._on_seconds)
        self.watcher.subscribe(on_epoch=self._on_epoch, on_timing=self._on_timing)
        self.watcher.start()

        self._track(self.scheduler.schedule_repeating(self.config.tick_ms, self.timer.tick))
        self._begin_phase()
        logger.info("Validation session mounted")

    def close(self) -> None:
        """Cancel all timers. In-flight tasks finish but cannot dispatch."""
        if self.status == SessionState.CLOSED:
            return
        self.status = SessionState.CLOSED
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self._poll_handle = None
        self._extra_flips_handle = None
        self.watcher.stop()
        logger.info("Validation session closed")

    async def drain(self) -> None:
        """Wait until every effect task started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, action: Action) -> ValidationState:
        """
        Apply an action and start the effects it returns.

        A closed session ignores every action.
        """
        if not self.is_active:
            logger.debug("Ignoring %s on %s session", action.action_type.value, self.status.value)
            return self._state

        result = self.reducer.apply(self._state, action)
        self._state = result.new_state
        for change in result.state_changes:
            logger.info(change)
        if action.action_type in PHASE_RESETS:
            self._phase += 1

        for effect in result.effects:
            self._spawn(self._run_effect(effect, self._phase))

        self._sync_polling()
        return self._state

    async def _run_effect(self, effect: Effect, phase: int) -> None:
        actions = await self.runner.run(effect)
        if phase != self._phase:
            logger.debug("Dropping %s started before the flip list was reset", type(effect).__name__)
            return
        for action in actions:
            self.dispatch(action)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Session task failed", exc_info=task.exception())

    def _track(self, handle: CancelHandle) -> CancelHandle:
        self._handles.append(handle)
        return handle

    def _untrack(self, handle: CancelHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        if handle in self._handles:
            self._handles.remove(handle)

    # =========================================================================
    # User actions
    # =========================================================================

    def answer(self, option: AnswerType) -> ValidationState:
        return self.dispatch(Action.answer(option))

    def next(self) -> ValidationState:
        return self.dispatch(Action.next())

    def prev(self) -> ValidationState:
        return self.dispatch(Action.prev())

    def pick(self, index: int) -> ValidationState:
        return self.dispatch(Action.pick(index))

    def report_abuse(self) -> ValidationState:
        return self.dispatch(Action.report_abuse())

    async def submit(self, session_type: SessionType | None = None) -> ValidationState:
        """
        Submit the answers of a phase.

        Raises AlreadySubmittedError if the phase was submitted or a
        submission is in flight; node failures propagate as RpcError.
        """
        if not self.is_active:
            raise RuntimeError("Cannot submit on an inactive session")

        session_type = session_type or self.submit_session_type
        if self._state.submitted(session_type) or session_type in self._submitting:
            raise AlreadySubmittedError(f"{session_type.value} answers already submitted")

        epoch = self.epoch.epoch if self.epoch is not None else self._state.epoch
        effect = SubmitAnswers(session_type=session_type, flips=self._state.flips, epoch=epoch)

        self._submitting.add(session_type)
        try:
            actions = await self.runner.run(effect)
        finally:
            self._submitting.discard(session_type)

        for action in actions:
            self.dispatch(action)
            if self.config.persist_answers and self.is_active:
                self._persist(session_type, action.payload.answers, epoch)
        return self._state

    def _persist(self, session_type: SessionType, payload, epoch: int | None) -> None:
        if session_type == SessionType.SHORT:
            self.store.set_short_answers(payload, epoch)
        else:
            self.store.set_long_answers(payload, epoch)

    # =========================================================================
    # Polling and timers
    # =========================================================================

    def _sync_polling(self) -> None:
        """Poll flips while they are not all ready."""
        should_poll = not self._state.ready and not self._state.all_submitted
        if should_poll and self._poll_handle is None:
            self._poll_handle = self._track(
                self.scheduler.schedule_repeating(
                    self.config.fetch_interval_ms, self._poll_flips, immediate=True
                )
            )
        elif not should_poll and self._poll_handle is not None:
            self._untrack(self._poll_handle)
            self._poll_handle = None

    def _poll_flips(self) -> None:
        if self._state.ready:
            return
        self.dispatch(Action.start_fetch_flips(self.current_session_type))

    def _begin_phase(self) -> None:
        """Schedule extra-flip promotion for a phase that just started."""
        self._untrack(self._extra_flips_handle)
        self._extra_flips_handle = self._track(
            self.scheduler.schedule_once(
                self.config.extra_flips_delay_ms, self._on_extra_flips_timeout
            )
        )

    def _on_extra_flips_timeout(self) -> None:
        self._extra_flips_handle = None
        if not self._state.ready and not self._state.short_answers_submitted:
            self.dispatch(Action.show_extra_flips())

    def _on_epoch(self, epoch: EpochInfo) -> None:
        saved_epoch = self.store.get().epoch
        if epoch.epoch != saved_epoch:
            logger.info("New epoch %s (was %s), resetting validation", epoch.epoch, saved_epoch)
            self.store.reset(epoch.epoch)
            self.dispatch(Action.reset_epoch(epoch.epoch))
            if self.is_active:
                self._begin_phase()
        self.timer.recompute(self.epoch, self.timing)

    def _on_timing(self, timing: CeremonyIntervals) -> None:
        self.timer.recompute(self.epoch, self.timing)

    def _on_seconds(self, seconds: int | None) -> None:
        """Last-chance submission of short answers one second before the end."""
        if seconds != 1 or not self.is_active:
            return
        state = self._state
        if (
            state.has_some_answer
            and self.is_short_session
            and not state.short_answers_submitted
            and SessionType.SHORT not in self._submitting
            and self._auto_submitted_epoch != self.epoch.epoch
        ):
            logger.info("Short session ending, submitting recorded answers")
            self._auto_submitted_epoch = self.epoch.epoch
            self._spawn(self._auto_submit())

    async def _auto_submit(self) -> None:
        try:
            await self.submit(SessionType.SHORT)
        except (RpcError, AlreadySubmittedError) as e:
            logger.error("Automatic submission of short answers failed: %s", e)
