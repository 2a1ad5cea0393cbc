"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
Provides test settings, fake browsers, the orchestrator and an API client.
"""

import base64
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

# Must be set before any docrender module configures logging
os.environ.setdefault("DOCRENDER_ENVIRONMENT", "testing")
os.environ.setdefault("DOCRENDER_STORAGE_PATH", tempfile.mkdtemp(prefix="docrender-tests-"))
os.environ.setdefault("DOCRENDER_BROWSER_WARMUP", "false")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docrender.api.main import create_app
from docrender.config.settings import Settings
from docrender.core.rendering.dependencies import DependencyResolver
from docrender.core.rendering.orchestrator import RenderOrchestrator
from docrender.core.rendering.template_engine import TemplateEngine
from docrender.core.storage.payloads import PayloadStore

from tests.utils.mocks import FakeBrowser, FakeBrowserManager, FakeHeadSession


def encode(source: str) -> str:
    """Base64 transport encoding used for layouts."""
    return base64.b64encode(source.encode("utf-8")).decode("ascii")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated to a temporary storage directory."""
    return Settings(
        environment="testing",
        storage_path=tmp_path / "storage",
        browser_warmup=False,
        payload_retention=3,
        max_concurrent_sessions=4,
        render_deadline_seconds=5,
    )


@pytest.fixture
def encode_layout() -> Callable[[str], str]:
    return encode


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def fake_manager(fake_browser: FakeBrowser) -> FakeBrowserManager:
    return FakeBrowserManager(fake_browser)


@pytest.fixture
def head_session() -> FakeHeadSession:
    return FakeHeadSession()


@pytest.fixture
def orchestrator(
    fake_manager: FakeBrowserManager, head_session: FakeHeadSession, test_settings: Settings
) -> RenderOrchestrator:
    """Orchestrator wired to fakes instead of Chromium and the network."""
    resolver = DependencyResolver(timeout_seconds=0.2, session=head_session)  # type: ignore[arg-type]
    return RenderOrchestrator(
        fake_manager,  # type: ignore[arg-type]
        resolver=resolver,
        template_engine=TemplateEngine(),
        settings=test_settings,
    )


@pytest.fixture
def payload_store(test_settings: Settings) -> PayloadStore:
    return PayloadStore(test_settings.storage_path / "payloads", retention=test_settings.payload_retention)


@pytest.fixture
def app(
    test_settings: Settings,
    fake_manager: FakeBrowserManager,
    orchestrator: RenderOrchestrator,
    payload_store: PayloadStore,
) -> FastAPI:
    return create_app(
        settings=test_settings,
        browser_manager=fake_manager,  # type: ignore[arg-type]
        orchestrator=orchestrator,
        payload_store=payload_store,
    )


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """FastAPI test client; runs the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
