"""
FastAPI Application
==================

Main FastAPI application exposing document generation over HTTP.
Owns the shared browser manager and wires it into the render orchestrator.
"""

import asyncio
from contextlib import asynccontextmanager
import sys
import time
import traceback
import uuid
from typing import AsyncGenerator, Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from docrender.api.routes import data, generate, health
from docrender.config.settings import get_settings, Settings
from docrender.config.logging import bind_request_context, clear_request_context, get_logger
from docrender.core.errors import DocumentRenderError, ErrorKind
from docrender.core.rendering.browser_manager import BrowserManager
from docrender.core.rendering.orchestrator import RenderOrchestrator
from docrender.core.storage.payloads import PayloadStore
from docrender.models.schemas import ErrorResponse

logger = get_logger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    exc: Optional[BaseException] = None,
) -> JSONResponse:
    settings: Settings = request.app.state.settings
    stack = None
    if exc is not None and not settings.is_production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    body = ErrorResponse(
        error=error,
        error_code=error_code,
        stack=stack,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Map render failures and request errors to structured JSON responses."""

    @app.exception_handler(DocumentRenderError)
    async def document_render_exception_handler(
        request: Request, exc: DocumentRenderError
    ) -> JSONResponse:
        # The orchestrator has already logged the failure at error level
        logger.info(
            "Render request failed",
            error_code=exc.kind.value,
            error_message=exc.message,
            status_code=exc.status_code,
            request_id=getattr(request.state, "request_id", None),
        )
        return _error_response(request, exc.status_code, exc.message, exc.kind.value, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.warning("Invalid request body", errors=messages)
        return _error_response(request, 400, messages, ErrorKind.VALIDATION.value)

    @app.exception_handler(HTTPException)
    async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        logger.warning("HTTP exception", status_code=exc.status_code, detail=exc.detail)
        return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", exception=str(exc), exc_info=True)
        return _error_response(request, 500, "Internal server error", "internal_error", exc)


def create_app(
    settings: Optional[Settings] = None,
    browser_manager: Optional[BrowserManager] = None,
    orchestrator: Optional[RenderOrchestrator] = None,
    payload_store: Optional[PayloadStore] = None,
) -> FastAPI:
    """
    Application factory.

    Components not passed in are built from settings. Used by the console
    entry point and by tests that inject fakes.
    """
    settings = settings or get_settings()
    browser_manager = browser_manager or BrowserManager(settings)
    orchestrator = orchestrator or RenderOrchestrator(browser_manager, settings=settings)
    payload_store = payload_store or PayloadStore(
        settings.storage_path / "payloads", retention=settings.payload_retention
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("Starting docrender", environment=settings.environment)

        if settings.browser_warmup:
            try:
                await browser_manager.ensure_ready()
                logger.info("Browser warmed up")
            except DocumentRenderError as e:
                # Requests retry the launch; release whatever was partially started
                logger.error("Browser warm-up failed", error=e.message)
                await browser_manager.shutdown()

        try:
            yield
        finally:
            logger.info("Shutting down docrender")
            try:
                await browser_manager.shutdown()
            except Exception as e:
                logger.error("Error shutting down browser", error=str(e))

    app = FastAPI(
        title="docrender",
        description="Render layout templates with data to HTML or PDF",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
    )

    app.state.settings = settings
    app.state.browser_manager = browser_manager
    app.state.orchestrator = orchestrator
    app.state.payload_store = payload_store
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> Any:  # type: ignore
        """Tag the request, its log lines and its response with a request ID."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        clear_request_context()
        bind_request_context(request_id=request_id, path=request.url.path)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(data.router)
    app.include_router(generate.router)

    @app.get("/info", tags=["General"])
    async def info() -> dict[str, Any]:
        """Basic API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "health_check": "/health",
            "endpoints": {
                "generate": "POST /generate",
                "generate_legacy": "POST /",
                "list_payloads": "GET /data",
                "get_payload": "GET /data/{id}",
            },
        }

    return app


app = create_app()


def run_server() -> None:
    """Console entry point: serve the application with uvicorn."""
    settings = get_settings()
    try:
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.critical("Server terminated by uncaught error", error=str(e), exc_info=True)
        try:
            asyncio.run(app.state.browser_manager.shutdown())
        except Exception as close_error:
            logger.error("Best-effort browser shutdown failed", error=str(close_error))
        sys.exit(1)


if __name__ == "__main__":
    run_server()
