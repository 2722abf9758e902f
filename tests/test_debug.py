"""
Debug helpers (debug/core.py)
"""

from faultline.debug import Debug, get_execution_context, set_execution_context


def _raise_chain():
    try:
        raise KeyError("inner")
    except KeyError as inner:
        raise RuntimeError("outer") from inner


# ============================================================================
# format_bytes
# ============================================================================

class TestFormatBytes:

    def test_zero(self):
        assert Debug.format_bytes(0) == "0 B"

    def test_bytes(self):
        assert Debug.format_bytes(512) == "512.00 B"

    def test_kilobytes(self):
        assert Debug.format_bytes(1024) == "1.00 KB"
        assert Debug.format_bytes(1536) == "1.50 KB"

    def test_megabytes_and_gigabytes(self):
        assert Debug.format_bytes(1048576) == "1.00 MB"
        assert Debug.format_bytes(1073741824) == "1.00 GB"

    def test_precision(self):
        assert Debug.format_bytes(1536, precision=0) == "2 KB"

    def test_largest_unit(self):
        assert Debug.format_bytes(1024 ** 5) == "1024.00 TB"


# ============================================================================
# Variables and context
# ============================================================================

class TestVariableInfo:

    def test_string(self):
        assert Debug.get_variable_info("abc") == {"type": "string", "value": '"abc"', "size": 3}

    def test_list(self):
        assert Debug.get_variable_info([1, 2]) == {"type": "array", "value": "list(2)", "size": 2}

    def test_null(self):
        assert Debug.get_variable_info(None) == {"type": "null", "value": "null", "size": None}


class TestExecutionContext:

    def test_default_is_cli(self):
        assert get_execution_context() == "cli"
        assert Debug.is_cli() is True

    def test_server_context(self):
        set_execution_context("server")
        assert Debug.is_cli() is False

    def test_repl_counts_as_cli(self):
        set_execution_context("repl")
        assert Debug.is_cli() is True


# ============================================================================
# dump
# ============================================================================

class TestDump:

    def test_return_output(self):
        assert Debug.dump([1], return_output=True) == "list(1) [\n  0 => 1\n]"

    def test_cli_writes_plain_text(self, capsys):
        assert Debug.dump("x") is None
        assert capsys.readouterr().out == '"x"\n'

    def test_server_writes_escaped_pre_block(self, capsys):
        set_execution_context("server")
        Debug.dump("<b>")
        assert capsys.readouterr().out == "<pre>&quot;&lt;b&gt;&quot;</pre>"


# ============================================================================
# Source context
# ============================================================================

class TestFileContext:

    def test_window_around_line(self, tmp_path):
        source = tmp_path / "module.py"
        source.write_text("\n".join(f"line {i}" for i in range(1, 21)) + "\n")

        context = Debug.get_file_context(str(source), 10, context=2)
        assert context == {8: "line 8", 9: "line 9", 10: "line 10", 11: "line 11", 12: "line 12"}

    def test_window_clipped_at_start(self, tmp_path):
        source = tmp_path / "short.py"
        source.write_text("a\nb\nc\n")

        assert Debug.get_file_context(str(source), 1) == {1: "a", 2: "b", 3: "c"}

    def test_missing_file(self, tmp_path):
        assert Debug.get_file_context(str(tmp_path / "absent.py"), 3) == {}

    def test_empty_path(self):
        assert Debug.get_file_context("", 1) == {}


# ============================================================================
# Memory and timing
# ============================================================================

class TestRuntimeInfo:

    def test_memory_info(self):
        info = Debug.get_memory_info()
        assert set(info) == {"current", "current_formatted", "peak", "peak_formatted", "limit"}
        assert info["current"] > 0
        assert info["peak"] >= info["current"]
        assert isinstance(info["limit"], str)

    def test_execution_time(self):
        info = Debug.get_execution_time()
        assert info["execution"] >= 0
        assert info["current"] >= info["start"]
        assert info["execution_formatted"].endswith(" seconds")


# ============================================================================
# Exceptions
# ============================================================================

class TestExceptionHelpers:

    def test_create_trace_follows_chain(self):
        try:
            _raise_chain()
        except RuntimeError as exc:
            chain = Debug.create_trace(exc)

        assert [link["class"] for link in chain] == ["RuntimeError", "KeyError"]
        assert chain[0]["message"] == "outer"
        assert chain[0]["file"] == __file__
        assert chain[0]["trace"]

    def test_format_exception(self):
        try:
            _raise_chain()
        except RuntimeError as exc:
            text = Debug.format_exception(exc)

        lines = text.splitlines()
        assert lines[0] == "RuntimeError: outer"
        assert lines[1].startswith(f"File: {__file__}:")
        assert "Stack trace:" in lines
        assert f"#0 {__file__}(" in text
        assert "_raise_chain()" in text
