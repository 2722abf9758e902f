"""
JSON renderer.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from ..faults.flatten import FlattenException
from .base import ErrorRenderer


class JsonErrorRenderer(ErrorRenderer):
    """
    Render exceptions as a JSON document.

    Shape::

        {"error": {"type": "exception", "class": ..., "message": ..., "status_code": ...}}

    Debug mode adds ``file``, ``line``, ``trace`` and ``previous``.
    """

    content_type = "application/json"

    def render(self, exception: FlattenException) -> str:
        error: Dict[str, Any] = {
            "type": "exception",
            "class": exception.class_name,
            "message": exception.message,
            "status_code": exception.status_code,
        }

        if self.debug:
            error["file"] = exception.file
            error["line"] = exception.line
            error["trace"] = self._format_trace(exception.trace)
            if exception.previous is not None:
                error["previous"] = self._format_previous(exception.previous)

        return json.dumps({"error": error}, indent=4, ensure_ascii=False)

    def _format_trace(self, trace: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        formatted = []
        for index, frame in enumerate(trace):
            entry = {
                "step": index,
                "file": frame.get("file", "[internal]"),
                "line": frame.get("line"),
                "function": frame.get("function"),
            }
            if "class" in frame:
                entry["class"] = frame["class"]
                entry["type"] = frame.get("type", ".")
            formatted.append(entry)
        return formatted

    def _format_previous(self, exception: FlattenException) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "class": exception.class_name,
            "message": exception.message,
            "file": exception.file,
            "line": exception.line,
        }
        if exception.previous is not None:
            data["previous"] = self._format_previous(exception.previous)
        return data
