"""
FastAPI Application - REST API for a presentation client.

Endpoints:
    GET    /api/v1/health                               Health check
    GET    /api/v1/validation                           Validation state
    GET    /api/v1/validation/timer                     Phase countdown
    POST   /api/v1/validation/answer                    Answer current flip
    POST   /api/v1/validation/next                      Next flip
    POST   /api/v1/validation/prev                      Previous flip
    POST   /api/v1/validation/pick                      Jump to a flip
    POST   /api/v1/validation/report                    Report current flip
    POST   /api/v1/validation/submit                    Submit a phase
    GET    /api/v1/validation/flips/{hash}/pics/{index} Raw image bytes

The session is mounted in the application lifespan and closed on
shutdown. All responses are JSON with explicit Pydantic schemas,
except raw image bytes.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from .. import __version__
from ..config import ALLOWED_ORIGINS, CEREMONY_ENV, CeremonyConfig

logger = logging.getLogger(__name__)


def create_app(service=None, mount_session: bool = True):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates one for the
            configured node if not provided)
        mount_session: Mount the session on startup and close it on shutdown

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse, Response
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        AnswerRequest,
        ErrorCode,
        ErrorResponse,
        HealthResponse,
        PickRequest,
        SubmitRequest,
        SubmitResponse,
        TimerResponse,
        ValidationStateResponse,
    )

    owned_client = None
    if service is None:
        from ..node import NodeClient
        from ..session import AsyncioScheduler, ValidationSession, create_store

        config = CeremonyConfig.from_env()
        owned_client = NodeClient(config.node_url)
        session = ValidationSession(
            owned_client,
            create_store(config.store_path),
            AsyncioScheduler(),
            config=config,
        )
        service = APIService(session=session)

    api_service = service

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if mount_session:
            api_service.session.mount()
        yield
        if mount_session:
            api_service.session.close()
        if owned_client is not None:
            await owned_client.aclose()

    app = FastAPI(
        title="Ceremony Validation API",
        description="""
Validation session engine - judge flips during the short and long sessions.

## Flow

1. Poll `GET /validation` until `ready` is true
2. Answer each flip with `POST /answer`, moving with `POST /next`
3. Submit with `POST /submit` once `can_submit` is true

Answers recorded before the short session ends are submitted automatically.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_READY` | Session not mounted or closed |
| `INVALID_INDEX` | Pick index outside visible flips |
| `FLIP_NOT_FOUND` | No such flip or image |
| `ALREADY_SUBMITTED` | Phase already submitted |
| `SUBMISSION_FAILED` | Node rejected or unreachable |
| `VALIDATION_ERROR` | Answer option outside 1-3 |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.SESSION_NOT_READY: 409,
        ErrorCode.INVALID_INDEX: 400,
        ErrorCode.FLIP_NOT_FOUND: 404,
        ErrorCode.ALREADY_SUBMITTED: 409,
        ErrorCode.SUBMISSION_FAILED: 502,
        ErrorCode.VALIDATION_ERROR: 400,
    }

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_codes.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    error_responses = {
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            environment=CEREMONY_ENV,
            session_status=api_service.session.status.value,
        )

    # =========================================================================
    # State Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/validation",
        response_model=ValidationStateResponse,
        tags=["Validation"],
        summary="Get the validation state",
    )
    async def get_state() -> ValidationStateResponse:
        return api_service.get_state()

    @app.get(
        "/api/v1/validation/timer",
        response_model=TimerResponse,
        tags=["Validation"],
        summary="Get the phase countdown",
    )
    async def get_timer() -> TimerResponse:
        return api_service.get_timer()

    @app.get(
        "/api/v1/validation/flips/{flip_hash}/pics/{index}",
        responses={404: {"model": ErrorResponse}},
        tags=["Validation"],
        summary="Get one image of a flip",
    )
    async def get_pic(flip_hash: str, index: int):
        result = api_service.get_pic(flip_hash, index)
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return Response(content=result, media_type="application/octet-stream")

    # =========================================================================
    # User Actions
    # =========================================================================

    @app.post(
        "/api/v1/validation/answer",
        response_model=ValidationStateResponse,
        responses=error_responses,
        tags=["Judging"],
        summary="Answer the current flip",
    )
    async def answer(request: AnswerRequest):
        return respond(api_service.answer(request.option))

    @app.post(
        "/api/v1/validation/next",
        response_model=ValidationStateResponse,
        responses=error_responses,
        tags=["Judging"],
    )
    async def next_flip():
        return respond(api_service.next())

    @app.post(
        "/api/v1/validation/prev",
        response_model=ValidationStateResponse,
        responses=error_responses,
        tags=["Judging"],
    )
    async def prev_flip():
        return respond(api_service.prev())

    @app.post(
        "/api/v1/validation/pick",
        response_model=ValidationStateResponse,
        responses=error_responses,
        tags=["Judging"],
    )
    async def pick(request: PickRequest):
        return respond(api_service.pick(request.index))

    @app.post(
        "/api/v1/validation/report",
        response_model=ValidationStateResponse,
        responses=error_responses,
        tags=["Judging"],
        summary="Report the current flip as inappropriate",
    )
    async def report():
        return respond(api_service.report_abuse())

    @app.post(
        "/api/v1/validation/submit",
        response_model=SubmitResponse,
        responses={**error_responses, 502: {"model": ErrorResponse}},
        tags=["Judging"],
        summary="Submit the answers of a phase",
    )
    async def submit(request: Optional[SubmitRequest] = None):
        result = await api_service.submit(request.session_type if request else None)
        if isinstance(result, ErrorResponse):
            logger.warning("Submission rejected: %s", result.error)
        return respond(result)

    return app


# For running directly: uvicorn ceremony.api.app:create_app --factory
