"""
Renderers (renderers/)

Plain text, terminal, HTML and JSON output for FlattenException.
"""

import json
import sys

import pytest

from faultline.faults import FlattenException
from faultline.renderers import (
    CliErrorRenderer,
    HtmlErrorRenderer,
    JsonErrorRenderer,
    PlainTextRenderer,
    create_renderer,
    supports_colors,
)


def _raise_chain():
    try:
        raise KeyError("missing key")
    except KeyError as inner:
        raise RuntimeError("Database connection failed") from inner


@pytest.fixture
def chained():
    try:
        _raise_chain()
    except RuntimeError as exc:
        return FlattenException.create_from(exc)


@pytest.fixture
def hostile():
    """Snapshot whose every displayed field carries markup."""
    flat = FlattenException("<script>alert(1)</script>", 0, "/app/<b>.py", 3, "App<Error>")
    return flat.set_trace([{"file": "/app/<i>.py", "line": 1, "function": "<evil>"}])


class _Tty:
    def isatty(self):
        return True


class _Pipe:
    def isatty(self):
        return False


# ============================================================================
# Plain text
# ============================================================================

class TestPlainTextRenderer:

    def test_render(self):
        flat = FlattenException("Database connection failed", 0, "", 0, "RuntimeError")
        assert PlainTextRenderer().render(flat) == "Error: Database connection failed\n"

    def test_content_type(self):
        assert PlainTextRenderer.content_type.startswith("text/plain")


# ============================================================================
# Terminal
# ============================================================================

class TestCliErrorRenderer:

    def test_header_without_colors(self, chained):
        output = CliErrorRenderer(colors=False).render(chained)
        lines = output.splitlines()
        assert lines[1] == "ERROR"
        assert lines[2] == "=" * 60
        assert "RuntimeError" in lines
        assert "Database connection failed" in lines
        assert f"File: {__file__}:{chained.line}" in lines
        assert "\x1b[" not in output

    def test_non_debug_has_no_sections(self, chained):
        output = CliErrorRenderer(colors=False).render(chained)
        assert "STACK TRACE" not in output
        assert "SOURCE CONTEXT" not in output

    def test_debug_sections(self, chained):
        output = CliErrorRenderer(debug=True, colors=False).render(chained)
        assert "SOURCE CONTEXT" in output
        assert "STACK TRACE" in output
        assert "CAUSED BY" in output
        assert "DEBUG INFO" in output
        assert "#0 _raise_chain()" in output
        assert "KeyError: 'missing key'" in output
        assert "Memory Usage:" in output

    def test_source_context_marks_current_line(self, chained):
        output = CliErrorRenderer(debug=True, colors=False).render(chained)
        current = [line for line in output.splitlines() if line.startswith(">")]
        assert len(current) == 1
        assert f"{chained.line:4d} | " in current[0]
        assert "raise RuntimeError" in current[0]

    def test_colors(self, chained):
        output = CliErrorRenderer(colors=True).render(chained)
        assert "\x1b[" in output

    def test_trace_frame_without_file(self):
        flat = FlattenException("m", 0, "", 0, "Exception").set_trace([{"function": "main"}])
        output = CliErrorRenderer(debug=True, colors=False).render(flat)
        assert "#0 main()\n    [internal]" in output


class TestSupportsColors:

    def test_no_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("TERM", "xterm-256color")
        assert supports_colors(_Tty()) is False

    def test_dumb_terminal(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("TERM", "dumb")
        assert supports_colors(_Tty()) is False

    def test_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("TERM", "xterm-256color")
        assert supports_colors(_Tty()) is True
        assert supports_colors(_Pipe()) is False

    def test_windows_terminal(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("WT_SESSION", "abc")
        assert supports_colors(_Pipe()) is True


# ============================================================================
# HTML
# ============================================================================

class TestHtmlErrorRenderer:

    def test_production_page(self, chained):
        output = HtmlErrorRenderer().render(chained)
        assert "<title>Server Error</title>" in output
        assert "Error 500" in output
        assert "Database connection failed" not in output
        assert "RuntimeError" not in output

    def test_debug_page(self, chained):
        output = HtmlErrorRenderer(debug=True).render(chained)
        assert "<title>RuntimeError: Database connection failed</title>" in output
        assert f"in {__file__} line {chained.line}" in output
        assert "Source Context" in output
        assert "Stack Trace" in output
        assert "_raise_chain()" in output
        assert "Previous Exceptions" in output
        assert "context-line context-line-current" in output

    def test_debug_page_escapes_markup(self, hostile):
        output = HtmlErrorRenderer(debug=True).render(hostile)
        assert "<script>" not in output
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in output
        assert "App&lt;Error&gt;" in output
        assert "/app/&lt;b&gt;.py" in output
        assert "&lt;evil&gt;()" in output

    def test_css_is_not_escaped(self, chained):
        output = HtmlErrorRenderer().render(chained)
        assert '"Segoe UI"' in output

    def test_no_previous_section_without_chain(self):
        flat = FlattenException("alone", 0, "", 0, "Exception")
        output = HtmlErrorRenderer(debug=True).render(flat)
        assert "Previous Exceptions" not in output
        assert "Source Context" not in output


# ============================================================================
# JSON
# ============================================================================

class TestJsonErrorRenderer:

    def test_production_shape(self, chained):
        data = json.loads(JsonErrorRenderer().render(chained))
        assert data == {
            "error": {
                "type": "exception",
                "class": "RuntimeError",
                "message": "Database connection failed",
                "status_code": 500,
            },
        }

    def test_debug_shape(self, chained):
        data = json.loads(JsonErrorRenderer(debug=True).render(chained))["error"]
        assert data["file"] == __file__
        assert data["line"] == chained.line
        assert data["trace"][0]["step"] == 0
        assert data["trace"][0]["function"] == "_raise_chain"
        assert data["previous"] == {
            "class": "KeyError",
            "message": "'missing key'",
            "file": __file__,
            "line": chained.previous.line,
        }

    def test_trace_entry_defaults(self):
        flat = FlattenException("m", 0, "", 0, "Exception").set_trace([
            {"function": "run", "class": "app.Job", "type": "."},
        ])
        data = json.loads(JsonErrorRenderer(debug=True).render(flat))["error"]
        assert data["trace"] == [{
            "step": 0,
            "file": "[internal]",
            "line": None,
            "function": "run",
            "class": "app.Job",
            "type": ".",
        }]
        assert "previous" not in data

    def test_indented_and_unicode(self):
        flat = FlattenException("naïve café", 0, "", 0, "Exception")
        output = JsonErrorRenderer().render(flat)
        assert output.startswith('{\n    "error": {')
        assert "naïve café" in output

    def test_content_type(self):
        assert JsonErrorRenderer.content_type == "application/json"


# ============================================================================
# Factory
# ============================================================================

class TestCreateRenderer:

    @pytest.mark.parametrize("name,cls", [
        ("plain", PlainTextRenderer),
        ("cli", CliErrorRenderer),
        ("html", HtmlErrorRenderer),
        ("json", JsonErrorRenderer),
    ])
    def test_names(self, name, cls):
        assert type(create_renderer(name)) is cls

    def test_debug_flag(self):
        assert create_renderer("json", debug=True).debug is True

    def test_colors_flag(self):
        assert create_renderer("cli", colors=False).colors is False

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown renderer"):
            create_renderer("xml")
