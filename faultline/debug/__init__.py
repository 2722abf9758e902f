"""
Faultline Debug - Value inspection and development helpers.

Features:
- Cycle-safe, depth-bounded description of arbitrary values
- Exception traces and plain-text formatting
- Source context around a file line
- Memory usage, execution time and byte formatting
- ``Debug.dump`` for terminal or HTML output
"""

from .inspector import (
    ValueInspector,
    RenderedNode,
    VariableInfo,
    Describable,
    classify,
    describe,
    format_value,
    RECURSION_MARKER,
    DEPTH_MARKER,
)
from .core import (
    Debug,
    set_execution_context,
    get_execution_context,
)

__all__ = [
    "ValueInspector",
    "RenderedNode",
    "VariableInfo",
    "Describable",
    "classify",
    "describe",
    "format_value",
    "RECURSION_MARKER",
    "DEPTH_MARKER",
    "Debug",
    "set_execution_context",
    "get_execution_context",
]
