"""
Renderer contract.

A renderer turns a FlattenException into the text written for an
uncaught fault. Renderers must not keep references to the snapshot
after ``render`` returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..faults.flatten import FlattenException


class ErrorRenderer(ABC):
    """Base class for exception renderers."""

    #: Content type announced when the output starts a response
    content_type: str = "text/html; charset=utf-8"

    def __init__(self, debug: bool = False):
        self.debug = debug

    @abstractmethod
    def render(self, exception: FlattenException) -> str:
        """Render a flattened exception to string output."""


class PlainTextRenderer(ErrorRenderer):
    """One-line fallback renderer: ``Error: <message>``."""

    content_type = "text/plain; charset=utf-8"

    def render(self, exception: FlattenException) -> str:
        return f"Error: {exception.message}\n"


def frame_function(frame: dict) -> str:
    """``Class.function`` (or bare function) for a trace frame."""
    function = frame.get("function", "")
    if "class" in frame:
        return f"{frame['class']}{frame.get('type', '.')}{function}"
    return function
