"""
Faultline Debug - Development helpers.

Static helpers used by renderers and available to application code:
exception traces and formatting, source context, memory and timing
information, byte formatting and variable dumps.
"""

from __future__ import annotations

import html
import linecache
import os
import resource
import sys
import time
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

from .inspector import classify, format_value


_UNITS = ("B", "KB", "MB", "GB", "TB")

# Execution context: "cli" (terminal / script) or a server name.
_execution_context: ContextVar[str] = ContextVar("faultline_execution_context", default="cli")

_CLI_CONTEXTS = frozenset({"cli", "repl"})

_start_time: Optional[float] = None


def set_execution_context(name: str) -> None:
    """Declare the current execution context (``cli``, ``server``, ...)."""
    _execution_context.set(name)


def get_execution_context() -> str:
    """Return the current execution context name."""
    return _execution_context.get()


def _current_rss() -> int:
    """Resident set size in bytes (peak RSS where /proc is unavailable)."""
    try:
        with open("/proc/self/statm") as f:
            pages = int(f.read().split()[1])
        return pages * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        return _peak_rss()


def _peak_rss() -> int:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is KiB on Linux, bytes on macOS
    if sys.platform == "darwin":
        return usage.ru_maxrss
    return usage.ru_maxrss * 1024


def memory_limit() -> int:
    """Address-space limit in bytes, ``-1`` when unlimited."""
    soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    if soft == resource.RLIM_INFINITY:
        return -1
    return soft


class Debug:
    """Debug utilities for development environments."""

    @staticmethod
    def create_trace(exc: BaseException) -> List[Dict[str, Any]]:
        """
        Create a detailed trace of an exception and its causal chain.

        Returns one entry per link, outermost first, each with
        ``class``, ``message``, ``file``, ``line``, ``code`` and ``trace``.
        """
        from ..faults.flatten import FlattenException

        chain: List[Dict[str, Any]] = []
        link: Optional[FlattenException] = FlattenException.create_from(exc)
        while link is not None:
            chain.append({
                "class": link.class_name,
                "message": link.message,
                "file": link.file,
                "line": link.line,
                "code": link.code,
                "trace": link.trace,
            })
            link = link.previous
        return chain

    @staticmethod
    def format_exception(exc: BaseException) -> str:
        """Format an exception as a short plain-text report."""
        from ..faults.flatten import FlattenException

        flattened = FlattenException.create_from(exc)
        output = f"{flattened.class_name}: {flattened.message}\n"
        output += f"File: {flattened.file}:{flattened.line}\n\n"
        output += "Stack trace:\n"
        for i, frame in enumerate(flattened.trace):
            output += "#%d %s(%d): %s%s%s()\n" % (
                i,
                frame.get("file", "[internal function]"),
                frame.get("line", 0),
                frame.get("class", ""),
                frame.get("type", ""),
                frame.get("function", ""),
            )
        return output

    @staticmethod
    def get_file_context(file: str, line: int, context: int = 5) -> Dict[int, str]:
        """
        Get source lines around ``line``.

        Returns:
            Mapping of 1-based line number to source text, empty if the
            file cannot be read
        """
        if not file or not os.path.isfile(file) or not os.access(file, os.R_OK):
            return {}

        lines = linecache.getlines(file)
        start = max(0, line - context - 1)
        end = min(len(lines), line + context)
        return {i + 1: lines[i].rstrip("\r\n") for i in range(start, end)}

    @staticmethod
    def get_variable_info(value: Any) -> Dict[str, Any]:
        """Return ``type``, ``value`` and ``size`` for a value."""
        info = classify(value)
        return {"type": info.kind, "value": info.value, "size": info.size}

    @staticmethod
    def is_cli() -> bool:
        """Check if we're running in a terminal/script context."""
        return _execution_context.get() in _CLI_CONTEXTS

    @staticmethod
    def get_memory_info() -> Dict[str, Any]:
        """Current and peak memory usage of the process."""
        current = _current_rss()
        peak = max(_peak_rss(), current)
        return {
            "current": current,
            "current_formatted": Debug.format_bytes(current),
            "peak": peak,
            "peak_formatted": Debug.format_bytes(peak),
            "limit": str(memory_limit()),
        }

    @staticmethod
    def format_bytes(size: int, precision: int = 2) -> str:
        """
        Format a byte count for humans.

        Example:
            >>> Debug.format_bytes(1536)
            '1.50 KB'
        """
        if size == 0:
            return "0 B"

        index = 0
        while index < len(_UNITS) - 1 and abs(size) >= 1024 ** (index + 1):
            index += 1
        return f"{size / 1024 ** index:.{precision}f} {_UNITS[index]}"

    @staticmethod
    def get_execution_time() -> Dict[str, Any]:
        """Time elapsed since the first call (or since import)."""
        global _start_time
        if _start_time is None:
            _start_time = _IMPORT_TIME

        current = time.time()
        execution = current - _start_time
        return {
            "start": _start_time,
            "current": current,
            "execution": execution,
            "execution_formatted": f"{execution:.4f} seconds",
        }

    @staticmethod
    def dump(value: Any, return_output: bool = False) -> Optional[str]:
        """
        Dump a variable with the value inspector.

        Args:
            value: Value to describe
            return_output: Return the text instead of writing it

        Returns:
            The formatted text when ``return_output`` is set, else None
        """
        output = format_value(value)
        if return_output:
            return output

        if Debug.is_cli():
            sys.stdout.write(output + "\n")
        else:
            sys.stdout.write("<pre>" + html.escape(output) + "</pre>")
        return None


_IMPORT_TIME = time.time()
