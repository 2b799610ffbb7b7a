"""
API Module - Presentation client interface.

Exposes the validation session via REST API.
The client:
1. Polls the validation state and the phase countdown
2. Fetches flip images
3. Answers, navigates and reports flips
4. Submits the answers of each phase

All state is session-scoped.
"""

from .schemas import (
    # Requests
    AnswerRequest,
    PickRequest,
    SubmitRequest,
    # Responses
    ValidationStateResponse,
    TimerResponse,
    SubmitResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    FlipInfo,
    AnswerInfo,
    ErrorCode,
    SessionKind,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "AnswerRequest",
    "PickRequest",
    "SubmitRequest",
    # Responses
    "ValidationStateResponse",
    "TimerResponse",
    "SubmitResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "FlipInfo",
    "AnswerInfo",
    "ErrorCode",
    "SessionKind",
    # Service
    "APIService",
    "create_app",
]
