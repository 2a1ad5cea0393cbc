"""
Render Orchestrator
===================

End-to-end render pipeline: validate input, make sure the shared browser is
ready, decode and render the layout, assemble the document and drive a render
session under the admission ceiling and the per-request deadline.
"""

import asyncio
import base64
import binascii
import time
from typing import Any, List, Optional, Tuple, Union

from docrender.config.logging import get_logger
from docrender.config.settings import Settings, get_settings
from docrender.core.errors import (
    DocumentRenderError,
    RenderFailedError,
    RenderTimeoutError,
    ValidationError,
)
from docrender.core.rendering.assembler import assemble_document, read_stylesheet
from docrender.core.rendering.browser_manager import BrowserManager
from docrender.core.rendering.dependencies import DependencyResolver
from docrender.core.rendering.session import RenderSession, resolve_output_format
from docrender.core.rendering.template_engine import TemplateEngine
from docrender.models.schemas import (
    DependencyCheckFailure,
    OutputFormat,
    RenderArtifact,
    RenderRequest,
)

logger = get_logger(__name__)


def decode_layout(layout: str) -> str:
    """
    Decode the base64 transport encoding of a layout template.

    Line wrapped and unpadded input is accepted; characters outside the
    base64 alphabet are not.

    Raises:
        ValidationError: If the value is not base64 encoded UTF-8 text
    """
    compact = "".join(layout.split())
    compact += "=" * (-len(compact) % 4)
    try:
        raw = base64.b64decode(compact, validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"layout is not valid base64 encoded UTF-8: {e}") from e


class RenderOrchestrator:
    """Composes the render pipeline around an injected browser manager."""

    def __init__(
        self,
        browser_manager: BrowserManager,
        resolver: Optional[DependencyResolver] = None,
        template_engine: Optional[TemplateEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.browser_manager = browser_manager
        self.resolver = resolver or DependencyResolver(settings=self.settings)
        self.template_engine = template_engine or TemplateEngine()
        self.logger: Any = logger.bind(component="render_orchestrator")  # structlog.BoundLoggerBase
        self._admission = asyncio.Semaphore(self.settings.max_concurrent_sessions)
        self._active_sessions = 0

    @property
    def active_sessions(self) -> int:
        """Render sessions currently holding an admission slot."""
        return self._active_sessions

    async def render(self, request: RenderRequest) -> RenderArtifact:
        """
        Render a request to an HTML or PDF artifact.

        Args:
            request: Render request with base64 layout, data and dependencies

        Returns:
            RenderArtifact with the complete output

        Raises:
            DocumentRenderError: Subclass describing the failure kind
        """
        start_time = time.monotonic()

        if not request.layout or not request.layout.strip():
            raise ValidationError("layout is required")
        output_format = resolve_output_format(request.file_format)

        log = self.logger.bind(
            output_format=output_format.value, dependencies=len(request.dependencies)
        )
        log.info("Render requested")

        try:
            await self.browser_manager.ensure_ready()

            template_source = decode_layout(request.layout)
            failures = await self._check_dependencies(request)
            content_html = await self.template_engine.render(template_source, request.data)
            document = assemble_document(
                content_html,
                read_stylesheet(self.settings.base_stylesheet_path),
                request.dependencies,
            )

            content, page_count = await self._run_session(
                document, output_format, request.pdf_options
            )
        except DocumentRenderError as e:
            log.error(
                "Render failed",
                error_kind=e.kind.value,
                error=e.message,
                duration=round(time.monotonic() - start_time, 3),
            )
            raise
        except Exception as e:
            log.error("Unexpected render failure", error=str(e), exc_info=True)
            raise RenderFailedError(f"Rendering failed: {e}") from e

        artifact = RenderArtifact(
            content=content,
            output_format=output_format,
            page_count=page_count,
            dependency_failures=failures,
            duration=time.monotonic() - start_time,
        )
        log.info(
            "Render completed",
            size=len(content),
            page_count=page_count,
            dependency_failures=len(failures),
            duration=round(artifact.duration, 3),
        )
        return artifact

    async def _check_dependencies(self, request: RenderRequest) -> List[DependencyCheckFailure]:
        if not self.settings.dependency_checks_enabled or not request.dependencies:
            return []
        return await self.resolver.validate(request.dependencies)

    async def _run_session(
        self, document: str, output_format: OutputFormat, pdf_options: Any
    ) -> Tuple[Union[str, bytes], int]:
        deadline = self.settings.render_deadline_seconds
        try:
            async with asyncio.timeout(deadline):
                async with self._admission:
                    self._active_sessions += 1
                    try:
                        # Re-validate: the browser may have been recycled while waiting for admission
                        handle = await self.browser_manager.ensure_ready()
                        async with RenderSession(handle.browser, self.settings) as session:
                            content = await session.render(
                                document,
                                output_format,
                                pdf_options,
                                post_load_css=read_stylesheet(self.settings.post_load_stylesheet_path),
                            )
                            return content, session.page_count or 1
                    finally:
                        self._active_sessions -= 1
        except TimeoutError as e:
            raise RenderTimeoutError(f"Render exceeded the {deadline:g}s deadline") from e
