"""FastAPI application factory and entry point.

Usage::

    uvicorn answer_probe.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from answer_probe.api.dependencies import build_fetcher
from answer_probe.config.settings import get_settings
from answer_probe.core.logging_config import configure_logging, request_id_var

# Applied at import so records emitted during app construction are captured;
# re-applied inside create_app() once settings are loaded.
configure_logging("INFO")

logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Returns:
        A fully configured ``FastAPI`` instance.  The fetch transport is
        created on startup and stored on ``app.state.fetcher``.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Polls asynchronously rendered answer pages for a short factual answer.",
        version="0.1.0",
        redirect_slashes=False,
    )

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration under a request ID."""
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = getattr(response, "status_code", 500)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn("request_complete", status_code=status_code, elapsed_ms=elapsed_ms)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers -----------------------------------------------------------

    from answer_probe.api.routes import answers  # noqa: PLC0415

    application.include_router(answers.router, prefix="/api")

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Create the shared fetch transport."""
        application.state.fetcher = build_fetcher(settings)
        logger.info(
            "application_startup",
            fetcher=settings.fetcher,
            max_attempts=settings.max_attempts,
            interval_seconds=settings.interval_seconds,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Close the fetch transport (and its browser, if any)."""
        fetcher = getattr(application.state, "fetcher", None)
        if fetcher is not None:
            await fetcher.aclose()
        logger.info("application_shutdown")

    @application.get("/api/health", tags=["system"])
    async def health() -> JSONResponse:
        """Return a minimal process-level liveness status."""
        return JSONResponse({"status": "ok"})

    return application


app = create_app()
"""The FastAPI application instance passed to Uvicorn."""
