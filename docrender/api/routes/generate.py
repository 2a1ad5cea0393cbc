"""
Generate Routes
===============

FastAPI routes for document generation.
``POST /`` is kept for clients of the earlier root endpoint.
"""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from docrender.api.dependencies import get_orchestrator, get_payload_store
from docrender.config.logging import get_logger
from docrender.core.rendering.orchestrator import RenderOrchestrator
from docrender.core.storage.payloads import PayloadStore, StorageError
from docrender.models.schemas import RenderRequest

logger = get_logger(__name__)

router = APIRouter(tags=["Rendering"])


def _persist(store: PayloadStore, body: Dict[str, Any]) -> None:
    # Retention is applied with every write so it holds whatever the render outcome
    try:
        store.save(body)
    finally:
        store.prune()


async def snapshot_payload(store: PayloadStore, body: Dict[str, Any]) -> None:
    """Persist the request body off the event loop; storage problems never fail the render."""
    try:
        await asyncio.to_thread(_persist, store, body)
    except (StorageError, OSError) as e:
        logger.warning("Payload snapshot failed", error=str(e))


@router.post("/generate")
@router.post("/", include_in_schema=False)
async def generate_document(
    render_request: RenderRequest,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
    store: PayloadStore = Depends(get_payload_store),
) -> Response:
    """
    Render a layout template with data to PDF or HTML.

    Args:
        render_request: Base64 layout, data, dependencies and output format

    Returns:
        The artifact with an application/pdf or text/html content type
    """
    if orchestrator.settings.persist_payloads:
        await snapshot_payload(store, render_request.model_dump(mode="json", by_alias=True))

    artifact = await orchestrator.render(render_request)

    headers = {"X-Page-Count": str(artifact.page_count)}
    if artifact.dependency_failures:
        headers["X-Dependency-Failures"] = str(len(artifact.dependency_failures))

    return Response(content=artifact.content, media_type=artifact.media_type, headers=headers)
