"""
API Service - Business logic layer between API and session.

The service:
1. Translates requests to session calls
2. Converts validation state into response models
3. Maps session and node failures to structured errors

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Failures are returned as ErrorResponse instances, never raised.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.state import AnswerType, Flip, SessionType, ValidationState
from ..node.client import RpcError
from ..session import AlreadySubmittedError, ValidationSession, displayed_seconds
from .schemas import (
    AnswerInfo,
    ErrorCode,
    ErrorResponse,
    FlipInfo,
    SessionKind,
    SubmitResponse,
    TimerResponse,
    ValidationStateResponse,
)


@dataclass
class APIService:
    """
    API service for a presentation client.

    Usage:
        service = APIService(session=session)

        state = service.get_state()
        service.answer(1)
        response = await service.submit()
    """
    session: ValidationSession

    def get_state(self) -> ValidationStateResponse:
        return self._state_response(self.session.state)

    def get_timer(self) -> TimerResponse:
        epoch = self.session.epoch
        session_type = self.session.current_session_type
        return TimerResponse(
            seconds=displayed_seconds(
                self.session.seconds, epoch, self.session.timing, session_type
            ),
            phase_seconds=self.session.seconds,
            session_type=SessionKind(session_type.value),
            epoch=epoch.epoch if epoch else None,
            current_period=epoch.current_period.value if epoch else None,
            phase_ending=self.session.timer.is_phase_ending,
        )

    def answer(self, option: int) -> ValidationStateResponse | ErrorResponse:
        error = self._require_active()
        if error:
            return error
        if option not in {AnswerType.LEFT, AnswerType.RIGHT, AnswerType.INAPPROPRIATE}:
            return ErrorResponse(
                error=f"Invalid answer option: {option}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        return self._state_response(self.session.answer(AnswerType(option)))

    def next(self) -> ValidationStateResponse | ErrorResponse:
        return self._act(self.session.next)

    def prev(self) -> ValidationStateResponse | ErrorResponse:
        return self._act(self.session.prev)

    def report_abuse(self) -> ValidationStateResponse | ErrorResponse:
        return self._act(self.session.report_abuse)

    def pick(self, index: int) -> ValidationStateResponse | ErrorResponse:
        error = self._require_active()
        if error:
            return error

        visible = len(self.session.state.visible_flips)
        if not 0 <= index < visible:
            return ErrorResponse(
                error=f"Index {index} outside visible flips (0-{visible - 1})",
                error_code=ErrorCode.INVALID_INDEX,
            )
        return self._state_response(self.session.pick(index))

    async def submit(
        self, session_type: SessionKind | None = None
    ) -> SubmitResponse | ErrorResponse:
        error = self._require_active()
        if error:
            return error

        if session_type:
            phase = SessionType(session_type.value)
        else:
            phase = self.session.submit_session_type
        try:
            state = await self.session.submit(phase)
        except AlreadySubmittedError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.ALREADY_SUBMITTED)
        except RpcError as e:
            return ErrorResponse(
                error=f"Submission failed: {e}",
                error_code=ErrorCode.SUBMISSION_FAILED,
                details={"method": e.method, "code": e.code},
            )

        answers = state.short_answers if phase == SessionType.SHORT else state.long_answers
        return SubmitResponse(
            session_type=SessionKind(phase.value),
            answers=[AnswerInfo(**item) for item in answers],
            state=self._state_response(state),
        )

    def get_pic(self, flip_hash: str, index: int) -> bytes | ErrorResponse:
        flip = self.session.state.get_flip(flip_hash)
        if flip is None or not flip.pics or not 0 <= index < len(flip.pics):
            return ErrorResponse(
                error=f"No image {index} for flip {flip_hash}",
                error_code=ErrorCode.FLIP_NOT_FOUND,
            )
        return flip.pics[index]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _act(self, method) -> ValidationStateResponse | ErrorResponse:
        error = self._require_active()
        if error:
            return error
        return self._state_response(method())

    def _require_active(self) -> ErrorResponse | None:
        if not self.session.is_active:
            return ErrorResponse(
                error=f"Session is {self.session.status.value}",
                error_code=ErrorCode.SESSION_NOT_READY,
            )
        return None

    def _state_response(self, state: ValidationState) -> ValidationStateResponse:
        return ValidationStateResponse(
            epoch=state.epoch,
            session_status=self.session.status.value,
            session_type=SessionKind(self.session.current_session_type.value),
            flips=[_flip_info(flip) for flip in state.flips],
            current_index=state.current_index,
            is_last=state.is_last,
            loading=state.loading,
            ready=state.ready,
            can_submit=state.can_submit,
            short_answers_submitted=state.short_answers_submitted,
            long_answers_submitted=state.long_answers_submitted,
            error=state.error,
        )


def _flip_info(flip: Flip) -> FlipInfo:
    return FlipInfo(
        hash=flip.hash,
        hidden=flip.hidden,
        ready=flip.ready,
        loaded=flip.loaded,
        failed=flip.failed,
        answer=int(flip.answer) if flip.has_answer else None,
        pics_count=len(flip.pics) if flip.pics else 0,
        orders=flip.orders,
    )
