"""Application entrypoint for the Remindo reminders service."""

import logging
from datetime import timedelta
from functools import partial
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from remindo.api.v1 import router as api_v1_router
from remindo.core.clock import SystemClock
from remindo.core.config import Settings, get_settings
from remindo.core.db import AsyncSessionLocal, engine
from remindo.core.logging import configure_logging
from remindo.models import Base
from remindo.services.notifier import NotificationFeed, build_notifier
from remindo.services.occurrence import next_occurrence
from remindo.services.reminders import ReminderService
from remindo.services.scanner import DueScanner
from remindo.services.store import BlobReminderStore
from remindo.web.routes import router as web_router

logger = logging.getLogger(__name__)

ERROR_CODE_MAP: dict[int, str] = {
    404: "RESOURCE_NOT_FOUND",
    422: "VALIDATION_ERROR",
}


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    configure_logging(settings)

    application = FastAPI(title="Remindo", version=settings.version)

    _configure_cors(application, settings)
    _configure_exception_handlers(application)
    _configure_services(application, settings)

    static_dir = Path(__file__).resolve().parent / "web" / "static"
    application.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    application.include_router(web_router)
    application.include_router(api_v1_router, prefix="/api/v1")

    @application.on_event("startup")
    async def _on_startup() -> None:  # pragma: no cover - exercised via tests
        async with engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
        if settings.scanner_enabled:
            application.state.due_scanner.start()

    @application.on_event("shutdown")
    async def _on_shutdown() -> None:  # pragma: no cover - exercised via tests
        await application.state.due_scanner.stop()

    return application


def _configure_services(application: FastAPI, settings: Settings) -> None:
    clock = SystemClock()
    store = BlobReminderStore(AsyncSessionLocal, settings.storage_key)
    feed = NotificationFeed(maxlen=settings.notification_feed_size, clock=clock.now)

    application.state.notification_feed = feed
    application.state.reminder_service = ReminderService(
        store, clock=clock, legacy_monthly_wrap=settings.legacy_monthly_wrap
    )
    application.state.due_scanner = DueScanner(
        store,
        build_notifier(settings, feed),
        clock=clock,
        interval_seconds=settings.scan_interval_seconds,
        tolerance=timedelta(minutes=settings.due_tolerance_minutes),
        calculate=partial(next_occurrence, legacy_monthly_wrap=settings.legacy_monthly_wrap),
    )


def _configure_cors(application: FastAPI, settings: Settings) -> None:
    if not settings.cors_origins:
        return

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _configure_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(HTTPException, _http_exception_handler)
    application.add_exception_handler(RequestValidationError, _validation_exception_handler)
    application.add_exception_handler(Exception, _unhandled_exception_handler)


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    if isinstance(exc.detail, dict):
        message = str(exc.detail.get("message", "")) or str(exc.detail)
        code = exc.detail.get(
            "code", ERROR_CODE_MAP.get(exc.status_code, f"HTTP_{exc.status_code}")
        )
    else:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        code = ERROR_CODE_MAP.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _error_response(code, message, exc.status_code)


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    logger.info("Validation error", extra={"errors": exc.errors()})
    return _error_response("VALIDATION_ERROR", "Validation error", status_code=422)


async def _unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled application error")
    return _error_response("INTERNAL_SERVER_ERROR", "Internal server error", status_code=500)


def _error_response(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


app = create_app()
