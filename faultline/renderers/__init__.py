"""
Faultline renderers - FlattenException → output text.
"""

from typing import Optional

from .base import ErrorRenderer, PlainTextRenderer
from .cli_renderer import CliErrorRenderer, supports_colors
from .html_renderer import HtmlErrorRenderer
from .json_renderer import JsonErrorRenderer


def create_renderer(name: str, debug: bool = False, colors: Optional[bool] = None) -> ErrorRenderer:
    """
    Build a renderer by name.

    Args:
        name: ``plain``, ``cli``, ``html`` or ``json``
        debug: Verbose output
        colors: Terminal colors for ``cli`` (None detects)

    Raises:
        ValueError: If the name is unknown
    """
    if name == "plain":
        return PlainTextRenderer(debug)
    if name == "cli":
        return CliErrorRenderer(debug, colors)
    if name == "html":
        return HtmlErrorRenderer(debug)
    if name == "json":
        return JsonErrorRenderer(debug)
    raise ValueError(f"Unknown renderer: {name!r}")


__all__ = [
    "ErrorRenderer",
    "PlainTextRenderer",
    "CliErrorRenderer",
    "HtmlErrorRenderer",
    "JsonErrorRenderer",
    "create_renderer",
    "supports_colors",
]
