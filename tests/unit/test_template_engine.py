"""
Unit Tests for Template Engine
==============================

Tests for layout rendering, registered helpers and compile failures.
"""

from datetime import date, datetime, timezone

import pytest

from docrender.core.errors import ErrorKind, TemplateCompileError
from docrender.core.rendering.template_engine import TemplateEngine, format_date, if_equals


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine()


class TestFormatDate:
    """Test the date formatting helper."""

    def test_datetime(self):
        assert format_date(datetime(2024, 3, 5, 14, 30), "%d/%m/%Y %H:%M") == "05/03/2024 14:30"

    def test_date_default_pattern(self):
        assert format_date(date(2024, 3, 5)) == "2024-03-05"

    def test_iso_string_with_zulu_suffix(self):
        assert format_date("2024-03-05T10:00:00Z", "%Y-%m-%d %H:%M") == "2024-03-05 10:00"

    def test_epoch_seconds(self):
        assert format_date(0) == "1970-01-01"

    def test_epoch_milliseconds(self):
        assert format_date(1700000000000) == "2023-11-14"

    @pytest.mark.parametrize("value", ["not a date", "", None, True, ["2024-01-01"]])
    def test_unparseable_values_pass_through(self, value):
        assert format_date(value) == value

    @pytest.mark.parametrize("value", [1e20, -1e20, float("nan"), float("inf")])
    def test_out_of_range_epochs_pass_through(self, value):
        assert format_date(value) is value

    @pytest.mark.asyncio
    async def test_out_of_range_epoch_does_not_fail_render(self, engine):
        html = await engine.render("<p>{{ when | format_date }}</p>", {"when": 1e20})
        assert html == "<p>1e+20</p>"


class TestIfEquals:
    """Test the equality branching helper."""

    def test_equal(self):
        assert if_equals("a", "a", "yes", "no") == "yes"

    def test_not_equal(self):
        assert if_equals(1, 2, "yes", "no") == "no"

    def test_defaults(self):
        assert if_equals(1, 1) is True
        assert if_equals(1, 2) == ""


class TestTemplateEngine:
    """Test layout rendering."""

    @pytest.mark.asyncio
    async def test_variable_substitution(self, engine):
        html = await engine.render("<p>Hello {{ name }}</p>", {"name": "Ada"})
        assert html == "<p>Hello Ada</p>"

    @pytest.mark.asyncio
    async def test_data_is_html_escaped(self, engine):
        html = await engine.render("<p>{{ name }}</p>", {"name": "<b>Ada</b>"})
        assert html == "<p>&lt;b&gt;Ada&lt;/b&gt;</p>"

    @pytest.mark.asyncio
    async def test_date_filter_and_global(self, engine):
        source = '{{ issued | format_date("%d.%m.%Y") }} {{ format_date(due) }}'
        html = await engine.render(source, {"issued": "2024-03-05", "due": "2024-04-01T00:00:00Z"})
        assert html == "05.03.2024 2024-04-01"

    @pytest.mark.asyncio
    async def test_equality_helpers(self, engine):
        source = (
            '{{ if_equals(status, "paid", "PAID", "DUE") }}'
            '{% if status is eq "paid" %} ok{% else %} pending{% endif %}'
        )
        assert await engine.render(source, {"status": "paid"}) == "PAID ok"
        assert await engine.render(source, {"status": "open"}) == "DUE pending"

    @pytest.mark.asyncio
    async def test_loops_over_data(self, engine):
        source = "{% for item in items %}<li>{{ item.name }}</li>{% endfor %}"
        html = await engine.render(source, {"items": [{"name": "a"}, {"name": "b"}]})
        assert html == "<li>a</li><li>b</li>"

    @pytest.mark.asyncio
    async def test_missing_variables_render_empty(self, engine):
        assert await engine.render("<p>{{ missing }}</p>", {}) == "<p></p>"

    @pytest.mark.asyncio
    async def test_syntax_error(self, engine):
        with pytest.raises(TemplateCompileError) as exc_info:
            await engine.render("<p>{% if %}</p>", {})

        assert exc_info.value.kind is ErrorKind.TEMPLATE_COMPILE
        assert "line 1" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_evaluation_error(self, engine):
        with pytest.raises(TemplateCompileError) as exc_info:
            await engine.render("{{ total / divisor }}", {"total": 10, "divisor": 0})

        assert "ZeroDivisionError" in exc_info.value.message

    def test_compile_returns_template(self, engine):
        template = engine.compile("{{ x }}")
        assert template is not None
