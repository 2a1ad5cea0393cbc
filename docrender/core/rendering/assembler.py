"""
Document Assembler
==================

Build one complete HTML document from rendered template output, a CSS string
and the caller's dependency list. Pure string assembly, no I/O.
"""

from functools import lru_cache
from html import escape
from pathlib import Path
from typing import List, Optional, Sequence

from docrender.config.logging import get_logger
from docrender.models.schemas import Dependency, DependencyKind

logger = get_logger(__name__)


def render_dependency_tag(dependency: Dependency) -> Optional[str]:
    """
    Render the head tag for one dependency.

    Returns None for dependencies without a URL or with an unknown kind;
    such entries are skipped rather than treated as errors.
    """
    if not dependency.url:
        return None

    url = escape(dependency.url, quote=True)
    kind = dependency.dependency_kind
    if kind is DependencyKind.STYLESHEET:
        return f'<link rel="stylesheet" href="{url}">'
    if kind is DependencyKind.SCRIPT:
        return f'<script src="{url}"></script>'
    return None


def assemble_document(
    content_html: str, css_text: str, dependencies: Sequence[Dependency]
) -> str:
    """
    Assemble a complete HTML document.

    Args:
        content_html: Rendered template output, inserted into the body verbatim
        css_text: Stylesheet text for the single head <style> block
        dependencies: External resources, injected in input order

    Returns:
        Complete HTML document string
    """
    tags: List[str] = []
    for dependency in dependencies:
        tag = render_dependency_tag(dependency)
        if tag is not None:
            tags.append(tag)

    head = "\n".join(
        [
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            f"<style>\n{css_text}\n</style>",
            *tags,
        ]
    )

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        f"<head>\n{head}\n</head>\n"
        f"<body>\n{content_html}\n</body>\n"
        "</html>\n"
    )


@lru_cache(maxsize=8)
def _read_cached(path: str, mtime: float) -> str:
    return Path(path).read_text(encoding="utf-8")


def read_stylesheet(path: Optional[Path]) -> str:
    """
    Read an optional stylesheet file.

    Returns an empty string when no path is configured or the file is missing.
    Reads are cached until the file changes.
    """
    if path is None:
        return ""
    try:
        return _read_cached(str(path), path.stat().st_mtime)
    except FileNotFoundError:
        logger.warning("Stylesheet not found", path=str(path))
        return ""
