"""
API Dependencies
================

FastAPI dependency providers resolving the components owned by the application.
"""

from fastapi import Request

from docrender.config.settings import Settings
from docrender.core.rendering.browser_manager import BrowserManager
from docrender.core.rendering.orchestrator import RenderOrchestrator
from docrender.core.storage.payloads import PayloadStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_browser_manager(request: Request) -> BrowserManager:
    return request.app.state.browser_manager


def get_orchestrator(request: Request) -> RenderOrchestrator:
    return request.app.state.orchestrator


def get_payload_store(request: Request) -> PayloadStore:
    return request.app.state.payload_store
