"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.settings import settings
from .controllers import transcribe
from .errors import RelayError
from .middleware import AllowOriginMiddleware, StructuredLoggingMiddleware, TelemetryMiddleware

logger = logging.getLogger(__name__)

_HTTP_ERROR_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


def _configure_logging() -> None:
    """Ensure application and middleware logs stream to stdout and file."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    middleware_logger = logging.getLogger("transcription_relay.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    middleware_logger.propagate = False

    noisy_loggers = [
        "httpx",
        "httpcore",
        "python_multipart",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers={"Access-Control-Allow-Origin": settings.cors_allow_origin},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Relay that forwards audio uploads to a speech transcription API",
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        StructuredLoggingMiddleware,
        caller_identity_header=settings.relay.caller_identity_header,
    )
    app.add_middleware(AllowOriginMiddleware, allow_origin=settings.cors_allow_origin)

    app.include_router(transcribe.router)

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(RelayError)
    async def relay_exception_handler(request: Request, exc: RelayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed status=%s kind=%s detail=%s",
                exc.status_code,
                type(exc).__name__,
                exc.__cause__ or exc,
            )
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = _HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", exc_info=exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "transcription_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
