"""
Terminal renderer.

Styled with click; colors are emitted only when the terminal supports
them (or when forced through ``colors=True``).
"""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

import click

from ..debug.core import Debug
from ..faults.flatten import FlattenException
from .base import ErrorRenderer, frame_function


def supports_colors(stream: Optional[TextIO] = None) -> bool:
    """Whether ``stream`` (stdout by default) is a color-capable terminal."""
    if "NO_COLOR" in os.environ:
        return False

    if sys.platform == "win32":
        return any(
            name in os.environ
            for name in ("WT_SESSION", "ConEmuPID", "ANSICON")
        ) or os.environ.get("TERM_PROGRAM") == "vscode"

    term = os.environ.get("TERM")
    if not term or term == "dumb":
        return False

    stream = stream if stream is not None else sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class CliErrorRenderer(ErrorRenderer):
    """
    Render exceptions for a terminal.

    Debug mode adds source context, the stack trace, the causal chain
    and memory/timing information.
    """

    content_type = "text/plain; charset=utf-8"

    def __init__(self, debug: bool = False, colors: Optional[bool] = None):
        super().__init__(debug)
        self.colors = supports_colors() if colors is None else colors

    def render(self, exception: FlattenException) -> str:
        output = self._render_header(exception)

        if self.debug:
            output += self._render_context(exception)
            output += self._render_trace(exception)
            output += self._render_previous(exception)
            output += self._render_memory_info()

        return output

    def _style(self, text: str, fg: Optional[str] = None, bold: bool = False) -> str:
        if not self.colors:
            return text
        return click.style(text, fg=fg, bold=bold)

    def _render_header(self, exception: FlattenException) -> str:
        output = "\n"
        output += self._style("ERROR", "red", bold=True) + "\n"
        output += "=" * 60 + "\n\n"
        output += self._style(exception.class_name, "yellow", bold=True) + "\n"
        output += exception.message + "\n\n"
        output += f"File: {self._style(exception.file, 'cyan')}:{exception.line}\n\n"
        return output

    def _section(self, title: str) -> str:
        return self._style(title, "blue", bold=True) + "\n" + "-" * 40 + "\n"

    def _render_context(self, exception: FlattenException) -> str:
        context = Debug.get_file_context(exception.file, exception.line, 5)
        if not context:
            return ""

        output = self._section("SOURCE CONTEXT")
        for lineno, line in context.items():
            current = lineno == exception.line
            output += "%s %s | %s\n" % (
                self._style(">" if current else " ", "red"),
                self._style(f"{lineno:4d}", "bright_black"),
                self._style(line, "red" if current else "white"),
            )
        return output + "\n"

    def _render_trace(self, exception: FlattenException) -> str:
        output = self._section("STACK TRACE")
        for i, frame in enumerate(exception.trace):
            if "file" in frame:
                location = f"{os.path.basename(frame['file'])}:{frame.get('line', '?')}"
            else:
                location = "[internal]"
            output += "%s %s\n    %s\n\n" % (
                self._style(f"#{i}", "yellow"),
                self._style(frame_function(frame) + "()", "green"),
                self._style(location, "cyan"),
            )
        return output

    def _render_previous(self, exception: FlattenException) -> str:
        chain = exception.chain()[1:]
        if not chain:
            return ""

        output = self._section("CAUSED BY")
        for link in chain:
            output += "%s: %s\n    %s\n\n" % (
                self._style(link.class_name, "yellow"),
                link.message,
                self._style(f"{link.file}:{link.line}", "cyan"),
            )
        return output

    def _render_memory_info(self) -> str:
        memory = Debug.get_memory_info()
        execution = Debug.get_execution_time()

        output = self._section("DEBUG INFO")
        output += f"Memory Usage: {memory['current_formatted']}\n"
        output += f"Peak Memory:  {memory['peak_formatted']}\n"
        output += f"Execution:    {execution['execution_formatted']}\n\n"
        return output
