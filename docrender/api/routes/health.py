"""
Health Routes
=============

FastAPI route for the health check endpoint.
"""

import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from docrender.api.dependencies import get_browser_manager
from docrender.config.logging import get_logger
from docrender.core.errors import DocumentRenderError
from docrender.core.rendering.browser_manager import BrowserManager
from docrender.models.schemas import HealthStatus

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(
    request: Request, browser_manager: BrowserManager = Depends(get_browser_manager)
):
    """
    Check that a browser can be made ready.

    Returns 200 with service and browser uptime, or 500 when the browser cannot start.
    """
    try:
        await browser_manager.ensure_ready()
    except DocumentRenderError as e:
        logger.error("Health check failed", error=e.message)
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": e.message})

    status = HealthStatus(
        status="healthy",
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        browser_uptime=browser_manager.uptime,
    )
    return JSONResponse(status_code=200, content=status.model_dump(by_alias=True))
