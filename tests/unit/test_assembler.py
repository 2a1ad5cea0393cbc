"""
Unit Tests for Document Assembler
=================================

Tests for head tag injection, document structure and stylesheet loading.
"""

import os

import pytest

from docrender.core.rendering.assembler import (
    assemble_document,
    read_stylesheet,
    render_dependency_tag,
)
from docrender.models.schemas import Dependency


def dep(kind: int, url: str = None) -> Dependency:
    return Dependency(type=kind, url=url)


class TestRenderDependencyTag:
    """Test single dependency tag rendering."""

    def test_stylesheet_tag(self):
        assert render_dependency_tag(dep(0, "https://cdn.test/a.css")) == (
            '<link rel="stylesheet" href="https://cdn.test/a.css">'
        )

    def test_script_tag(self):
        assert render_dependency_tag(dep(1, "https://cdn.test/a.js")) == (
            '<script src="https://cdn.test/a.js"></script>'
        )

    def test_unknown_kind_is_skipped(self):
        assert render_dependency_tag(dep(7, "https://cdn.test/a.bin")) is None

    def test_missing_url_is_skipped(self):
        assert render_dependency_tag(dep(0)) is None

    def test_url_is_attribute_escaped(self):
        tag = render_dependency_tag(dep(0, 'https://cdn.test/a.css?x="><script>'))
        assert '"><script>' not in tag
        assert "&quot;&gt;&lt;script&gt;" in tag


class TestAssembleDocument:
    """Test complete document assembly."""

    def test_document_structure(self):
        html = assemble_document("<p>Body</p>", "body { color: red; }", [])

        assert html.startswith("<!DOCTYPE html>\n")
        assert '<meta charset="UTF-8">' in html
        assert '<meta name="viewport"' in html
        assert "<style>\nbody { color: red; }\n</style>" in html
        assert "<body>\n<p>Body</p>\n</body>" in html
        assert html.index("</head>") < html.index("<body>")

    def test_single_style_block(self):
        html = assemble_document("<p/>", "p {}", [dep(0, "https://cdn.test/a.css")])
        assert html.count("<style>") == 1

    def test_tags_follow_input_order_and_skip_unknown(self):
        dependencies = [
            dep(1, "https://cdn.test/first.js"),
            dep(9, "https://cdn.test/ignored"),
            dep(0, "https://cdn.test/second.css"),
            dep(1, "https://cdn.test/third.js"),
        ]

        html = assemble_document("", "", dependencies)

        positions = [
            html.index("first.js"),
            html.index("second.css"),
            html.index("third.js"),
        ]
        assert positions == sorted(positions)
        assert "ignored" not in html
        assert html.count("<script src=") + html.count('<link rel="stylesheet"') == 3
        # Tags come after the style block, inside the head
        assert html.index("</style>") < positions[0] < html.index("</head>")

    def test_content_inserted_verbatim(self):
        content = "<div class=\"total-pages\"></div><script>var a = 1 < 2;</script>"
        assert content in assemble_document(content, "", [])


class TestReadStylesheet:
    """Test stylesheet file loading."""

    def test_none_path(self):
        assert read_stylesheet(None) == ""

    def test_missing_file(self, tmp_path):
        assert read_stylesheet(tmp_path / "missing.css") == ""

    def test_reads_and_refreshes_on_change(self, tmp_path):
        path = tmp_path / "extra.css"
        path.write_text("h1 { margin: 0; }", encoding="utf-8")
        assert read_stylesheet(path) == "h1 { margin: 0; }"

        path.write_text("h2 { margin: 1px; }", encoding="utf-8")
        stat = path.stat()
        # Force a distinct mtime so the cached copy is not reused
        os.utime(path, (stat.st_atime, stat.st_mtime + 5))
        assert read_stylesheet(path) == "h2 { margin: 1px; }"

    def test_bundled_base_stylesheet(self, test_settings):
        css = read_stylesheet(test_settings.base_stylesheet_path)
        assert ".total-pages" in css


@pytest.mark.parametrize("kind,expected", [(0, "<link"), (1, "<script")])
def test_dependency_kind_from_wire_name(kind, expected):
    """Dependencies are built from the public 'type' field."""
    dependency = Dependency.model_validate({"type": kind, "url": "https://cdn.test/x"})
    assert render_dependency_tag(dependency).startswith(expected)
