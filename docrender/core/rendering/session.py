"""
Render Session
==============

One browser tab for the lifetime of one render request: load the assembled
document, settle, inject post-load styles, estimate pagination, substitute
page placeholders and extract HTML or PDF. The tab is closed on every exit path.
"""

import math
import time
from copy import deepcopy
from typing import Any, Dict, Mapping, Optional, Union

from playwright.async_api import Browser, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from docrender.config.logging import get_logger
from docrender.config.settings import Settings, get_settings
from docrender.core.errors import (
    DocumentRenderError,
    RenderFailedError,
    RenderTimeoutError,
    UnsupportedFormatError,
)
from docrender.models.schemas import OutputFormat

logger = get_logger(__name__)

TOTAL_PAGES_SELECTOR = ".total-pages, [data-total-pages]"
PAGE_NUMBER_SELECTOR = ".page-number, [data-page-number]"

DEFAULT_PDF_OPTIONS: Dict[str, Any] = {
    "format": "A4",
    "printBackground": True,
    "margin": {"top": "40px", "right": "40px", "bottom": "40px", "left": "40px"},
}

# Caller facing (camelCase) option names -> Playwright page.pdf() keyword arguments
PDF_OPTION_KEYWORDS = {
    "format": "format",
    "printBackground": "print_background",
    "margin": "margin",
    "landscape": "landscape",
    "scale": "scale",
    "width": "width",
    "height": "height",
    "pageRanges": "page_ranges",
    "displayHeaderFooter": "display_header_footer",
    "headerTemplate": "header_template",
    "footerTemplate": "footer_template",
    "preferCSSPageSize": "prefer_css_page_size",
    "outline": "outline",
    "tagged": "tagged",
}

_MEASURE_SCRIPT = """() => ({
    scrollHeight: Math.max(
        document.body ? document.body.scrollHeight : 0,
        document.documentElement.scrollHeight
    ),
    viewportHeight: window.innerHeight
})"""

_SUBSTITUTE_TOTAL_SCRIPT = """({ selector, total }) => {
    const nodes = document.querySelectorAll(selector);
    nodes.forEach((node) => { node.textContent = String(total); });
    return nodes.length;
}"""

_PAGE_COUNTER_SCRIPT = """({ selector }) => {
    const update = () => {
        const current = Math.floor(window.scrollY / window.innerHeight) + 1;
        document.querySelectorAll(selector).forEach((node) => {
            node.textContent = String(current);
        });
    };
    window.addEventListener('scroll', update);
    update();
}"""


def resolve_output_format(value: Union[str, OutputFormat]) -> OutputFormat:
    """
    Map a requested format onto OutputFormat.

    Raises:
        UnsupportedFormatError: For anything other than html or pdf
    """
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(str(value).strip().lower())
    except ValueError:
        raise UnsupportedFormatError(f"Unsupported file format: {value!r}") from None


def estimate_page_count(scroll_height: float, viewport_height: float) -> int:
    """Approximate page count as ceil(scroll height / viewport height), at least 1."""
    if viewport_height <= 0:
        return 1
    return max(1, math.ceil(scroll_height / viewport_height))


def merge_pdf_options(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge caller PDF options over the defaults, key by key.

    Margins are merged side by side, so overriding ``top`` keeps the
    default for the other sides.
    """
    merged = deepcopy(DEFAULT_PDF_OPTIONS)
    for key, value in (overrides or {}).items():
        if key == "margin" and isinstance(value, Mapping):
            merged["margin"] = {**merged["margin"], **value}
        else:
            merged[key] = value
    return merged


def to_playwright_pdf_kwargs(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate merged options to page.pdf() keyword arguments, dropping unknown keys."""
    kwargs: Dict[str, Any] = {}
    for key, value in options.items():
        keyword = PDF_OPTION_KEYWORDS.get(key)
        if keyword is None:
            logger.warning("Ignoring unsupported PDF option", option=key)
            continue
        kwargs[keyword] = value
    return kwargs


class RenderSession:
    """
    Scoped owner of a single browser tab.

    Usage:
        async with RenderSession(browser) as session:
            content = await session.render(html, OutputFormat.PDF)
    """

    def __init__(self, browser: Browser, settings: Optional[Settings] = None):
        self.browser = browser
        self.settings = settings or get_settings()
        self.page: Optional[Page] = None
        self.page_count: Optional[int] = None
        self.started_at: Optional[float] = None
        self.logger: Any = logger.bind(component="render_session")  # structlog.BoundLoggerBase

    async def __aenter__(self) -> "RenderSession":
        self.started_at = time.monotonic()
        try:
            self.page = await self.browser.new_page(
                device_scale_factor=self.settings.device_scale_factor
            )
        except PlaywrightError as e:
            raise RenderFailedError(f"Could not open browser tab: {e}") from e
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the tab; failures are logged and never propagated."""
        page, self.page = self.page, None
        if page is None:
            return
        try:
            await page.close()
        except Exception as e:
            self.logger.warning("Failed to close browser tab", error=str(e))
        if self.started_at is not None:
            self.logger.debug(
                "Render session closed", duration=round(time.monotonic() - self.started_at, 3)
            )

    def _require_page(self) -> Page:
        if self.page is None:
            raise RenderFailedError("Render session has no open tab")
        return self.page

    async def configure_viewport(self) -> None:
        await self._require_page().set_viewport_size(
            {"width": self.settings.viewport_width, "height": self.settings.viewport_height}
        )

    async def load(self, html: str) -> None:
        """
        Set the document content and wait for the network to go idle.

        Raises:
            RenderTimeoutError: If the content does not settle in time
        """
        timeout = self.settings.content_load_timeout_ms
        try:
            await self._require_page().set_content(
                html, wait_until="networkidle", timeout=timeout
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(f"Content did not settle within {timeout}ms") from e

    async def inject_stylesheet(self, css_text: str) -> None:
        if css_text:
            await self._require_page().add_style_tag(content=css_text)

    async def emulate_screen_media(self) -> None:
        await self._require_page().emulate_media(media="screen")

    async def paginate(self) -> int:
        """Estimate the page count and write it into the total pages placeholders."""
        page = self._require_page()
        metrics = await page.evaluate(_MEASURE_SCRIPT)
        total = estimate_page_count(metrics["scrollHeight"], metrics["viewportHeight"])
        updated = await page.evaluate(
            _SUBSTITUTE_TOTAL_SCRIPT, {"selector": TOTAL_PAGES_SELECTOR, "total": total}
        )
        if self.settings.interactive_page_counter:
            await page.evaluate(_PAGE_COUNTER_SCRIPT, {"selector": PAGE_NUMBER_SELECTOR})

        self.page_count = total
        self.logger.debug("Pagination estimated", total_pages=total, placeholders=updated)
        return total

    async def extract(
        self, output_format: OutputFormat, pdf_options: Optional[Mapping[str, Any]] = None
    ) -> Union[str, bytes]:
        page = self._require_page()
        if output_format is OutputFormat.HTML:
            return await page.content()
        if output_format is OutputFormat.PDF:
            return await page.pdf(**to_playwright_pdf_kwargs(merge_pdf_options(pdf_options)))
        raise UnsupportedFormatError(f"Unsupported file format: {output_format!r}")

    async def render(
        self,
        html: str,
        output_format: OutputFormat,
        pdf_options: Optional[Mapping[str, Any]] = None,
        post_load_css: str = "",
    ) -> Union[str, bytes]:
        """
        Drive the tab through load, styling, pagination and extraction.

        Returns:
            HTML string or PDF bytes

        Raises:
            RenderTimeoutError: If the content load times out
            RenderFailedError: On any other browser failure
        """
        try:
            await self.configure_viewport()
            await self.load(html)
            await self.inject_stylesheet(post_load_css)
            await self.emulate_screen_media()
            await self.paginate()
            return await self.extract(output_format, pdf_options)
        except DocumentRenderError:
            raise
        except PlaywrightError as e:
            raise RenderFailedError(f"Browser rendering failed: {e}") from e
