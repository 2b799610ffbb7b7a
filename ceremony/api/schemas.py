"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a presentation client and
the ceremony engine. Image bytes are never inlined; clients fetch
them per flip and index.

Error Codes:
- SESSION_NOT_READY: Session is not mounted (or already closed)
- INVALID_INDEX: Pick index outside the visible flips
- FLIP_NOT_FOUND: No flip (or image) for the given hash/index
- ALREADY_SUBMITTED: Phase answers were already submitted
- SUBMISSION_FAILED: The node rejected the submission or was unreachable
- VALIDATION_ERROR: Answer option outside 1-3
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_READY = "SESSION_NOT_READY"
    INVALID_INDEX = "INVALID_INDEX"
    FLIP_NOT_FOUND = "FLIP_NOT_FOUND"
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class SessionKind(str, Enum):
    """Judging phase."""
    SHORT = "short"
    LONG = "long"


# =============================================================================
# Shared Models
# =============================================================================

class FlipInfo(BaseModel):
    """A flip as shown to the client."""
    hash: str
    hidden: bool = False
    ready: bool = False
    loaded: bool = False
    failed: bool = False
    answer: Optional[int] = Field(default=None, description="1 left, 2 right, 3 inappropriate")
    pics_count: int = 0
    orders: Optional[list[list[int]]] = None


class AnswerInfo(BaseModel):
    """One entry of a submitted answer payload."""
    hash: str
    answer: int
    easy: bool = False


# =============================================================================
# Requests
# =============================================================================

class AnswerRequest(BaseModel):
    """Answer the current flip."""
    option: int = Field(ge=1, le=3, description="1 left, 2 right, 3 inappropriate")


class PickRequest(BaseModel):
    """Jump to a flip."""
    index: int = Field(ge=0)


class SubmitRequest(BaseModel):
    """Submit a phase; defaults to the phase in progress."""
    session_type: Optional[SessionKind] = None


# =============================================================================
# Responses
# =============================================================================

class ValidationStateResponse(BaseModel):
    """Complete validation state."""
    epoch: Optional[int] = None
    session_status: str
    session_type: SessionKind
    flips: list[FlipInfo] = Field(default_factory=list)
    current_index: int = 0
    is_last: bool = Field(default=False, description="Current flip is the last one; clients confirm here")
    loading: bool = True
    ready: bool = False
    can_submit: bool = False
    short_answers_submitted: bool = False
    long_answers_submitted: bool = False
    error: Optional[str] = None


class TimerResponse(BaseModel):
    """Countdown of the phase being judged."""
    seconds: Optional[int] = Field(
        default=None,
        description="Seconds shown for session_type; a long session judged during the short session includes its duration",
    )
    phase_seconds: Optional[int] = Field(default=None, description="Seconds left in the node's current period")
    session_type: Optional[SessionKind] = None
    epoch: Optional[int] = None
    current_period: Optional[str] = None
    phase_ending: bool = False


class SubmitResponse(BaseModel):
    """Result of a successful submission."""
    success: bool = True
    session_type: SessionKind
    answers: list[AnswerInfo] = Field(default_factory=list)
    state: ValidationStateResponse


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    environment: str
    session_status: str
