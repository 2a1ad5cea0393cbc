"""
docrender
=========

An HTTP document-generation service that composes a layout template, a data
payload and external CSS/script dependencies into HTML or PDF through a shared
headless Chromium instance.

This package provides:
- FastAPI REST endpoints for HTTP access
- Jinja2 template rendering and document assembly
- Browser lifecycle management and per-request rendering sessions with Playwright
- Request payload snapshots with bounded retention
"""

__version__ = "1.0.0"
