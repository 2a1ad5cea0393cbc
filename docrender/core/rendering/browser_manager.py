"""
Browser Lifecycle Manager
=========================

Owns the single shared headless Chromium process: lazy launch, invalidation
on disconnect, age-based recycling and coordinated shutdown.

Consumers must not cache the returned handle across await points; call
``ensure_ready()`` again instead.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from playwright.async_api import Browser, Playwright, async_playwright

from docrender.config.logging import get_logger
from docrender.config.settings import Settings, get_settings
from docrender.core.errors import BrowserLaunchError

logger = get_logger(__name__)


class BrowserHandle:
    """A launched browser and the moment it was created."""

    def __init__(self, browser: Browser, created_at: float, clock: Callable[[], float]):
        self.browser = browser
        self.created_at = created_at
        self.launched_at = datetime.now(timezone.utc)
        self.disconnected = False
        self._clock = clock

    def age(self) -> float:
        """Seconds since launch."""
        return self._clock() - self.created_at

    def is_alive(self) -> bool:
        return not self.disconnected and self.browser.is_connected()


class BrowserManager:
    """Process-wide owner of the shared browser instance."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.max_age = self.settings.browser_max_age_seconds
        self.logger: Any = logger.bind(component="browser_manager")  # structlog.BoundLoggerBase
        self._clock = clock
        self._playwright: Optional[Playwright] = None
        self._handle: Optional[BrowserHandle] = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def handle(self) -> Optional[BrowserHandle]:
        return self._handle

    @property
    def uptime(self) -> Optional[float]:
        """Seconds the current browser has been running, None when there is none."""
        if self._handle is None or not self._handle.is_alive():
            return None
        return self._handle.age()

    def _usable(self, handle: Optional[BrowserHandle]) -> bool:
        return handle is not None and handle.is_alive() and handle.age() < self.max_age

    async def ensure_ready(self) -> BrowserHandle:
        """
        Return a live browser handle, launching one if needed.

        Concurrent callers share a single launch.

        Raises:
            BrowserLaunchError: If the browser process cannot be started
        """
        handle = self._handle
        if self._usable(handle):
            return handle  # type: ignore[return-value]

        async with self._lock:
            handle = self._handle
            if self._usable(handle):
                return handle  # type: ignore[return-value]

            if handle is not None:
                if handle.is_alive():
                    self.logger.info(
                        "Browser exceeded maximum age, restarting",
                        age_seconds=round(handle.age(), 1),
                        max_age_seconds=self.max_age,
                    )
                else:
                    self.logger.warning("Browser disconnected, launching replacement")
                self._handle = None
                await self._close_browser(handle.browser)

            self._handle = await self._launch()
            return self._handle

    async def _launch(self) -> BrowserHandle:
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()

            browser = await self._playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=list(self.settings.browser_args),
            )
        except Exception as e:
            self.logger.error("Browser launch failed", error=str(e))
            # The driver may be the broken part; the next call starts a fresh one
            await self._stop_playwright()
            raise BrowserLaunchError(f"Browser launch failed: {e}") from e

        handle = BrowserHandle(browser, self._clock(), self._clock)
        browser.on("disconnected", lambda _browser: self._on_disconnected(handle))
        self.launch_count += 1
        self.logger.info("Browser launched", launch_count=self.launch_count)
        return handle

    def _on_disconnected(self, handle: BrowserHandle) -> None:
        handle.disconnected = True
        # Ignore late events from a browser that has already been replaced
        if self._handle is handle:
            self._handle = None
            self.logger.warning("Browser process disconnected")

    async def _close_browser(self, browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as e:
            self.logger.warning("Error closing browser", error=str(e))

    async def shutdown(self) -> None:
        """Close the browser and stop the Playwright driver. Safe to call repeatedly."""
        async with self._lock:
            handle, self._handle = self._handle, None
            if handle is not None:
                await self._close_browser(handle.browser)

            stopped = await self._stop_playwright()

        if handle is not None or stopped:
            self.logger.info("Browser manager shut down")

    async def _stop_playwright(self) -> bool:
        """Stop the driver if one is running; returns whether there was one."""
        playwright, self._playwright = self._playwright, None
        if playwright is None:
            return False
        try:
            await playwright.stop()
        except Exception as e:
            self.logger.warning("Error stopping Playwright", error=str(e))
        return True
