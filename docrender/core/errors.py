"""
Render Errors
=============

Failure taxonomy for the render pipeline. Every failure carries an explicit
kind and HTTP status so callers branch on the type, not on message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Render failure kinds."""
    VALIDATION = "validation_error"
    BROWSER_LAUNCH = "browser_launch_error"
    TEMPLATE_COMPILE = "template_compile_error"
    RENDER_TIMEOUT = "render_timeout_error"
    UNSUPPORTED_FORMAT = "unsupported_format_error"
    RENDER_FAILED = "render_failed"


class DocumentRenderError(Exception):
    """Base exception for all render pipeline failures."""

    kind: ErrorKind = ErrorKind.RENDER_FAILED
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DocumentRenderError):
    """Missing or malformed required input."""

    kind = ErrorKind.VALIDATION
    status_code = 400


class UnsupportedFormatError(DocumentRenderError):
    """Requested output format is neither HTML nor PDF."""

    kind = ErrorKind.UNSUPPORTED_FORMAT
    status_code = 400


class BrowserLaunchError(DocumentRenderError):
    """The headless browser process could not be started."""

    kind = ErrorKind.BROWSER_LAUNCH


class TemplateCompileError(DocumentRenderError):
    """The layout template could not be compiled or rendered."""

    kind = ErrorKind.TEMPLATE_COMPILE


class RenderTimeoutError(DocumentRenderError):
    """Content did not settle within the load deadline."""

    kind = ErrorKind.RENDER_TIMEOUT


class RenderFailedError(DocumentRenderError):
    """Unexpected browser failure while driving a render session."""

    kind = ErrorKind.RENDER_FAILED
