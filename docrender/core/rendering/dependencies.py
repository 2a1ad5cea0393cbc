"""
Dependency Resolver
===================

Reachability checks for external CSS/script dependencies.
Failures are reported and logged but never block rendering; the browser's own
handling of broken resources is an acceptable degraded outcome.
"""

import asyncio
from typing import Any, List, Optional, Sequence

import aiohttp

from docrender.config.logging import get_logger
from docrender.config.settings import Settings, get_settings
from docrender.models.schemas import Dependency, DependencyCheckFailure

logger = get_logger(__name__)


class DependencyResolver:
    """Issues HEAD requests for dependency URLs with a per-URL timeout."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else self.settings.dependency_check_timeout_seconds
        )
        self.logger: Any = logger.bind(component="dependency_resolver")  # structlog.BoundLoggerBase
        self._session = session

    async def validate(self, dependencies: Sequence[Dependency]) -> List[DependencyCheckFailure]:
        """
        Check every dependency URL concurrently.

        Args:
            dependencies: Dependencies in injection order

        Returns:
            Failure records in input order; empty when everything is reachable
        """
        urls = [dependency.url for dependency in dependencies if dependency.url]
        if not urls:
            return []

        if self._session is not None:
            results = await self._check_all(self._session, urls)
        else:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                results = await self._check_all(session, urls)

        failures = [failure for failure in results if failure is not None]
        for failure in failures:
            self.logger.warning(
                "Dependency check failed", url=failure.url, reason=failure.reason
            )
        return failures

    async def _check_all(
        self, session: aiohttp.ClientSession, urls: List[str]
    ) -> List[Optional[DependencyCheckFailure]]:
        return list(await asyncio.gather(*(self._check(session, url) for url in urls)))

    async def _check(
        self, session: aiohttp.ClientSession, url: str
    ) -> Optional[DependencyCheckFailure]:
        """Check one URL; never raises."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                async with session.head(url, allow_redirects=True) as response:
                    if response.status >= 400:
                        return DependencyCheckFailure(
                            url=url, reason=f"HTTP {response.status}"
                        )
        except TimeoutError:
            return DependencyCheckFailure(
                url=url, reason=f"Timed out after {self.timeout_seconds:g}s"
            )
        except aiohttp.ClientError as e:
            return DependencyCheckFailure(url=url, reason=f"{type(e).__name__}: {e}")
        except Exception as e:
            self.logger.debug("Unexpected dependency check error", url=url, error=str(e))
            return DependencyCheckFailure(url=url, reason=str(e) or type(e).__name__)

        self.logger.debug("Dependency reachable", url=url)
        return None
