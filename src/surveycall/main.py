"""
FastAPI application entry point.

Run with ``uvicorn surveycall.main:create_app --factory`` or the
``surveycall`` console script.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from surveycall.admin.router import router as admin_router
from surveycall.config import Settings, get_settings
from surveycall.recordings.client import RecordingClient
from surveycall.recordings.router import router as recordings_router
from surveycall.shared.database import DatabaseManager
from surveycall.shared.exceptions import (
    AppException,
    DuplicateCreateError,
    MalformedPayloadError,
    NotFoundError,
    UpstreamError,
)
from surveycall.shared.logging import CorrelationIdMiddleware, get_logger, setup_logging
from surveycall.survey.questions import QuestionBank
from surveycall.survey.router import router as call_flow_router

logger = get_logger(__name__)

_STATUS_BY_EXCEPTION: dict[type[AppException], int] = {
    MalformedPayloadError: 400,
    NotFoundError: 404,
    DuplicateCreateError: 409,
    UpstreamError: 502,
}


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    return {"detail": {"code": code, "message": message, "details": details or {}}}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    db_manager: DatabaseManager = app.state.db_manager

    logger.info(
        "Application starting",
        extra={"env": settings.app_env, "question_count": app.state.question_bank.question_count()},
    )

    if settings.database_create_schema:
        await db_manager.create_schema()

    yield

    logger.info("Shutting down application")
    await app.state.recording_client.close()
    await db_manager.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    question_bank: QuestionBank | None = None,
    db_manager: DatabaseManager | None = None,
    recording_client: RecordingClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings and the question bank are loaded here so a bad configuration
    stops the process before it serves traffic.

    Raises:
        ConfigError: If required settings or the questions file are unusable.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Survey Call Flow API",
        description="Voice survey call-flow webhook",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.question_bank = question_bank or QuestionBank.from_file(settings.questions_file)
    app.state.db_manager = db_manager or DatabaseManager(
        settings.database_url,
        echo=settings.debug,
    )
    app.state.recording_client = recording_client or RecordingClient(
        api_key=settings.messagebird_api_key,
        base_url=settings.messagebird_voice_base_url,
        timeout=settings.recording_timeout_seconds,
    )

    # Map domain exceptions to HTTP responses
    @app.exception_handler(AppException)
    async def _app_exception(request: Request, exc: AppException) -> JSONResponse:
        status_code = next(
            (code for cls, code in _STATUS_BY_EXCEPTION.items() if isinstance(exc, cls)),
            500,
        )
        log = logger.warning if status_code < 500 else logger.error
        log(
            "Request failed",
            extra={
                "path": request.url.path,
                "status_code": status_code,
                "code": exc.code,
                "error": exc.message,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Participant store error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content=_error_body("STORE_ERROR", "Participant store unavailable"),
        )

    app.add_middleware(CorrelationIdMiddleware)

    # Include routers
    app.include_router(call_flow_router)
    app.include_router(recordings_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


def main() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("surveycall.main:create_app", factory=True, host="0.0.0.0", port=8000)
