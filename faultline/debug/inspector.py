"""
Faultline Debug - Value inspector.

Describes arbitrary Python values as a bounded tree of ``RenderedNode``
objects and lays that tree out as indented text.

- Primitives render canonically (``true``, ``42``, ``"text"``, ``null``)
- Composites render as ``key => child`` listings
- Objects render as ``visibility name => child`` listings
- Ancestor cycles render as a ``*RECURSION*`` marker
- Nesting deeper than ``max_depth`` renders as ``*DEEP RECURSION*``
"""

from __future__ import annotations

import array
import dataclasses
import io
import socket
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Protocol, runtime_checkable


RECURSION_MARKER = "*RECURSION*"
DEPTH_MARKER = "*DEEP RECURSION*"
DEFAULT_MAX_DEPTH = 10

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    '"': '\\"',
}

@runtime_checkable
class Describable(Protocol):
    """
    Capability for types that declare their own inspectable fields.

    ``describable_fields`` yields ``(name, visibility, value)`` triples,
    where visibility is ``public``, ``protected`` or ``private``.
    """

    def describable_fields(self) -> Iterable[tuple[str, str, Any]]: ...


@dataclass(frozen=True, slots=True)
class VariableInfo:
    """Classification of a single value."""
    kind: str
    value: str
    size: Optional[int] = None


@dataclass(frozen=True, slots=True)
class RenderedNode:
    """
    One node of a value description.

    Attributes:
        kind: Value kind (``string``, ``array``, ``object``, ``recursion``, ...)
        value: Primitive rendering (``"abc"``, ``list(3)``, ``object(pkg.Foo)``)
        size: String length or element count, when meaningful
        children: ``(label, node)`` pairs for composites and objects
    """
    kind: str
    value: str
    size: Optional[int] = None
    children: tuple[tuple[str, "RenderedNode"], ...] = ()


# ============================================================================
# Classification
# ============================================================================

def escape_string(text: str) -> str:
    """Backslash-escape newlines, tabs, quotes and backslashes."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def type_name(value: Any) -> str:
    """Module-qualified class name of ``value``; builtins keep their bare name."""
    cls = value if isinstance(value, type) else type(value)
    module = cls.__module__
    if module in ("builtins", None):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


def is_resource(value: Any) -> bool:
    """Whether ``value`` wraps an OS-level handle (file, socket)."""
    return isinstance(value, (io.IOBase, socket.socket))


def is_composite(value: Any) -> bool:
    """Whether ``value`` is rendered as a ``key => child`` listing."""
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    return isinstance(value, (Mapping, Set, Sequence, array.array))


def classify(value: Any) -> VariableInfo:
    """
    Classify a value into a kind, a primitive rendering and a size.

    Args:
        value: Any Python value

    Returns:
        VariableInfo with ``kind``, ``value`` and optional ``size``
    """
    if value is None:
        return VariableInfo("null", "null")
    if isinstance(value, bool):
        return VariableInfo("boolean", "true" if value else "false")
    if isinstance(value, int):
        return VariableInfo("integer", str(value))
    if isinstance(value, float):
        return VariableInfo("float", repr(value))
    if isinstance(value, str):
        return VariableInfo("string", f'"{escape_string(value)}"', len(value))
    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).decode("latin-1")
        return VariableInfo("string", f'b"{escape_string(text)}"', len(value))
    if isinstance(value, type):
        return VariableInfo("class", f"class({type_name(value)})")
    if is_composite(value):
        return VariableInfo("array", f"{type(value).__name__}({len(value)})", len(value))
    if is_resource(value):
        return VariableInfo("resource", f"resource({type(value).__name__})")
    return VariableInfo("object", f"object({type_name(value)})")


# ============================================================================
# Field enumeration
# ============================================================================

def _visibility(owner: type, name: str) -> tuple[str, str]:
    """Return ``(display_name, visibility)`` for an attribute name."""
    for klass in owner.__mro__:
        prefix = f"_{klass.__name__.lstrip('_')}__"
        if name.startswith(prefix) and not name.endswith("__"):
            return name[len(prefix) - 2:], "private"
    if name.startswith("_"):
        return name, "protected"
    return name, "public"


def _slot_names(owner: type) -> Iterator[str]:
    seen: set[str] = set()
    for klass in owner.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__") or slot in seen:
                continue
            seen.add(slot)
            if slot.startswith("__") and not slot.endswith("__"):
                slot = f"_{klass.__name__.lstrip('_')}{slot}"
            yield slot


def _declared_fields(obj: Any) -> Optional[list[tuple[str, str, Any]]]:
    """
    Fields from the ``Describable`` capability, or None when it is absent.

    The hook is looked up on the type, so objects that fabricate attributes
    on access (mocks, proxies) do not count as describable. A hook whose
    result is not an iterable of ``(name, visibility, value)`` triples is
    treated as absent.
    """
    if isinstance(obj, type) or not callable(getattr(type(obj), "describable_fields", None)):
        return None
    try:
        fields = list(obj.describable_fields())
    except TypeError:
        return None
    for field in fields:
        if not (isinstance(field, tuple) and len(field) == 3 and isinstance(field[0], str)):
            return None
    return fields


def object_fields(obj: Any) -> list[tuple[str, str, Any]]:
    """
    Enumerate ``(name, visibility, value)`` triples for an object.

    Order of preference: ``describable_fields()``, dataclass fields,
    ``__slots__``, then the instance ``__dict__``.
    """
    declared = _declared_fields(obj)
    if declared is not None:
        return declared

    owner = type(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        names = [f.name for f in dataclasses.fields(obj)]
    else:
        names = list(_slot_names(owner))
        try:
            names.extend(n for n in vars(obj) if n not in names)
        except TypeError:
            pass

    result = []
    for name in names:
        try:
            value = getattr(obj, name)
        except AttributeError:
            continue
        display, visibility = _visibility(owner, name)
        result.append((display, visibility, value))
    return result


# ============================================================================
# ValueInspector
# ============================================================================

class ValueInspector:
    """
    Cycle-safe, depth-bounded value describer.

    Each ``describe`` call tracks the identities of composites and objects
    currently being expanded. An identity is released once its subtree is
    finished, so a shared (non-cyclic) object is described in every
    branch that references it; only a true ancestor cycle short-circuits.

    Example:
        ```python
        a = []
        a.append(a)
        print(ValueInspector().format(a))
        # list(1) [
        #   0 => *RECURSION* list
        # ]
        ```
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, indent: str = "  "):
        self.max_depth = max_depth
        self.indent = indent

    def describe(self, value: Any, depth: int = 0) -> RenderedNode:
        """Describe ``value`` as a RenderedNode tree."""
        return self._describe(value, depth, set())

    def _describe(self, value: Any, depth: int, in_progress: set[int]) -> RenderedNode:
        if depth > self.max_depth:
            return RenderedNode("truncated", DEPTH_MARKER)

        info = classify(value)
        if info.kind not in ("array", "object"):
            return RenderedNode(info.kind, info.value, info.size)

        identity = id(value)
        if identity in in_progress:
            return RenderedNode("recursion", f"{RECURSION_MARKER} {type(value).__name__}")

        in_progress.add(identity)
        try:
            if info.kind == "array":
                children = self._composite_children(value, depth, in_progress)
            else:
                children = tuple(
                    (f"{visibility} {name}", self._describe(field, depth + 1, in_progress))
                    for name, visibility, field in object_fields(value)
                )
        finally:
            in_progress.discard(identity)

        return RenderedNode(info.kind, info.value, info.size, children)

    def _composite_children(
        self,
        value: Any,
        depth: int,
        in_progress: set[int],
    ) -> tuple[tuple[str, RenderedNode], ...]:
        if isinstance(value, Mapping):
            items: Iterable[tuple[str, Any]] = (
                (classify(key).value, item) for key, item in value.items()
            )
        else:
            items = ((str(index), item) for index, item in enumerate(value))

        return tuple(
            (label, self._describe(item, depth + 1, in_progress))
            for label, item in items
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def render(self, node: RenderedNode, level: int = 0) -> str:
        """Lay out a RenderedNode tree as indented text."""
        pad = self.indent * level
        if node.kind not in ("array", "object"):
            return pad + node.value

        open_, close = ("[", "]") if node.kind == "array" else ("{", "}")
        if not node.children:
            return f"{pad}{node.value} {open_}{close}"

        lines = [f"{pad}{node.value} {open_}"]
        inner = self.indent * (level + 1)
        for label, child in node.children:
            text = self.render(child, level + 1).lstrip()
            lines.append(f"{inner}{label} => {text}")
        lines.append(pad + close)
        return "\n".join(lines)

    def format(self, value: Any) -> str:
        """Describe and lay out ``value`` in one step."""
        return self.render(self.describe(value))


_default_inspector = ValueInspector()


def describe(value: Any, depth: int = 0) -> RenderedNode:
    """Describe ``value`` with the default inspector."""
    return _default_inspector.describe(value, depth)


def format_value(value: Any) -> str:
    """Describe ``value`` and lay it out as text with the default inspector."""
    return _default_inspector.format(value)
