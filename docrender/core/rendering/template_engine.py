"""
Template Engine
===============

Jinja2 rendering of caller supplied layout templates.
Registers the date formatting and equality branching helpers layouts rely on.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

import jinja2

from docrender.config.logging import get_logger
from docrender.core.errors import TemplateCompileError

logger = get_logger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d"


def format_date(value: Any, pattern: str = DEFAULT_DATE_FORMAT) -> Any:
    """
    Format a date-like value with a strftime pattern.

    Accepts datetime/date objects, ISO 8601 strings and epoch timestamps
    (seconds, or milliseconds when the value is too large for seconds).
    Values that cannot be interpreted as a date are returned unchanged.
    """
    moment: Optional[Union[date, datetime]] = None

    if isinstance(value, (datetime, date)):
        moment = value
    elif isinstance(value, bool):
        moment = None
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > 1e11 else value
        try:
            moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            moment = None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            moment = None

    if moment is None:
        return value
    return moment.strftime(pattern)


def if_equals(left: Any, right: Any, then: Any = True, otherwise: Any = "") -> Any:
    """Return ``then`` when both operands are equal, ``otherwise`` if not."""
    return then if left == right else otherwise


class TemplateEngine:
    """Jinja2-based layout renderer."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="template_engine")  # structlog.BoundLoggerBase
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        self.env = jinja2.Environment(
            autoescape=True,
            enable_async=True,
            undefined=jinja2.Undefined,
        )
        self._register_template_functions()

    def _register_template_functions(self) -> None:
        """Register custom Jinja2 functions, filters and tests."""
        self.env.filters["format_date"] = format_date
        self.env.globals["format_date"] = format_date
        self.env.globals["if_equals"] = if_equals
        self.env.tests["eq"] = lambda left, right: left == right

    def compile(self, source: str) -> jinja2.Template:
        """
        Compile template source.

        Raises:
            TemplateCompileError: If the source is not a valid template
        """
        try:
            return self.env.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            message = f"Template syntax error on line {e.lineno}: {e.message}"
            self.logger.error("Template compilation failed", error=message)
            raise TemplateCompileError(message) from e

    async def render(self, source: str, data: Dict[str, Any]) -> str:
        """
        Render template source with a data mapping.

        Args:
            source: Layout template source text
            data: Template context

        Returns:
            Rendered HTML string

        Raises:
            TemplateCompileError: If compilation or rendering fails
        """
        template = self.compile(source)
        try:
            html = await template.render_async(data)
        except Exception as e:
            # Evaluation errors (bad filters, arithmetic on data) are template failures too
            message = f"Template rendering failed: {type(e).__name__}: {e}"
            self.logger.error("Template rendering failed", error=message)
            raise TemplateCompileError(message) from e

        self.logger.debug("Template rendered", html_length=len(html))
        return html
