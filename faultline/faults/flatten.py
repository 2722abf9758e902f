"""
Faultline Faults - Exception snapshots.

FlattenException is the normalized, serializable record of an exception
and its causal chain. It is what renderers and loggers consume.
"""

from __future__ import annotations

import inspect
import traceback
from types import FrameType, TracebackType
from typing import Any, Optional

from ..debug.inspector import classify, type_name


# Short class name → status code. Names not listed fall back to the
# exception's own code when it looks like a status code, then to 500.
STATUS_CODE_MAP: dict[str, int] = {
    "InvalidArgumentException": 400,
    "UnexpectedValueException": 400,
    "LogicException": 400,
    "BadMethodCallException": 400,
    "DomainException": 400,
    "LengthException": 400,
    "OutOfRangeException": 400,
    "OutOfBoundsException": 400,
    "OverflowException": 400,
    "RangeException": 400,
    "UnderflowException": 400,
    "RuntimeException": 500,
    "ValueError": 400,
    "TypeError": 400,
    "LookupError": 400,
    "IndexError": 400,
    "KeyError": 400,
    "OverflowError": 400,
    "AttributeError": 400,
    "RuntimeError": 500,
    "NotImplementedError": 500,
}

MAX_ARGUMENT_LENGTH = 100

_FRAME_KEYS = ("file", "line", "function", "class", "type")


def determine_status_code(class_name: str, code: int) -> int:
    """Classify an exception by its short class name, then by its code."""
    short = class_name.rsplit(".", 1)[-1]
    if short in STATUS_CODE_MAP:
        return STATUS_CODE_MAP[short]
    if 100 <= code < 600:
        return code
    return 500


def sanitize_argument(value: Any) -> str:
    """Summarize a call argument without keeping the raw value."""
    text = value if isinstance(value, str) else classify(value).value

    if len(text) > MAX_ARGUMENT_LENGTH:
        return text[:MAX_ARGUMENT_LENGTH] + "..."
    return text


def sanitize_trace(trace: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep known frame keys, drop missing ones and summarize arguments."""
    sanitized = []
    for frame in trace:
        clean = {key: frame[key] for key in _FRAME_KEYS if frame.get(key) is not None}
        if frame.get("args") is not None:
            clean["args"] = [sanitize_argument(arg) for arg in frame["args"]]
        sanitized.append(clean)
    return sanitized


def _frame_arguments(frame: FrameType) -> tuple[Optional[str], list[Any]]:
    """Return ``(owner class, bound arguments)`` for a live frame."""
    arginfo = inspect.getargvalues(frame)
    local_vars = arginfo.locals
    owner = None
    args: list[Any] = []

    for index, name in enumerate(arginfo.args):
        if index == 0 and name in ("self", "cls") and name in local_vars:
            bound = local_vars[name]
            owner = type_name(bound)
            continue
        if name in local_vars:
            args.append(local_vars[name])

    if arginfo.varargs and arginfo.varargs in local_vars:
        args.extend(local_vars[arginfo.varargs])
    if arginfo.keywords and arginfo.keywords in local_vars:
        args.extend(local_vars[arginfo.keywords].values())

    return owner, args


def extract_trace(tb: Optional[TracebackType]) -> list[dict[str, Any]]:
    """Build raw frames from a traceback, innermost call first."""
    frames = []
    for frame, lineno in traceback.walk_tb(tb):
        owner, args = _frame_arguments(frame)
        entry: dict[str, Any] = {
            "file": frame.f_code.co_filename,
            "line": lineno,
            "function": frame.f_code.co_name,
            "args": args,
        }
        if owner is not None:
            entry["class"] = owner
            entry["type"] = "."
        frames.append(entry)
    frames.reverse()
    return frames


def exception_location(exc: BaseException) -> tuple[str, int]:
    """Where an exception happened: explicit attributes, then traceback."""
    file = getattr(exc, "file", None)
    line = getattr(exc, "line", None)
    if isinstance(file, str) and isinstance(line, int) and not isinstance(line, bool) and (file or line):
        return file, line

    if isinstance(exc, SyntaxError) and exc.filename:
        return exc.filename, exc.lineno or 0

    tb = exc.__traceback__
    if tb is None:
        return "", 0
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def exception_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str):
        return message
    return str(exc)


def exception_code(exc: BaseException) -> int:
    code = getattr(exc, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return 0


def causal_predecessor(exc: BaseException) -> Optional[BaseException]:
    """The exception that caused ``exc``, explicit or implicit."""
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


class FlattenException:
    """
    Immutable snapshot of an exception and its causal chain.

    Fields are read-only properties. ``set_previous``, ``set_status_code``,
    ``set_headers`` and ``set_trace`` replace a field wholesale and return
    the snapshot for chaining.

    Example:
        ```python
        try:
            risky()
        except Exception as exc:
            flat = FlattenException.create_from(exc)
            payload = flat.to_dict()
        ```
    """

    __slots__ = (
        "_message", "_code", "_file", "_line", "_class_name",
        "_status_code", "_headers", "_trace", "_previous",
    )

    def __init__(self, message: str, code: int, file: str, line: int, class_name: str):
        self._message = message
        self._code = code
        self._file = file
        self._line = line
        self._class_name = class_name
        self._status_code = determine_status_code(class_name, code)
        self._headers: dict[str, str] = {}
        self._trace: list[dict[str, Any]] = []
        self._previous: Optional[FlattenException] = None

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create_from(cls, exc: BaseException, _seen: Optional[set[int]] = None) -> "FlattenException":
        """Snapshot ``exc`` and, recursively, every exception that caused it."""
        seen = _seen if _seen is not None else set()
        seen.add(id(exc))

        file, line = exception_location(exc)
        flattened = cls(
            exception_message(exc),
            exception_code(exc),
            file,
            line,
            type_name(exc),
        )
        flattened.set_trace(extract_trace(exc.__traceback__))

        previous = causal_predecessor(exc)
        # ``raise e from e`` and similar produce cycles; stop at the first repeat
        if previous is not None and id(previous) not in seen:
            flattened.set_previous(cls.create_from(previous, seen))
        return flattened

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlattenException":
        """Rebuild a snapshot from ``to_dict`` output."""
        flattened = cls(
            data.get("message") or "",
            data.get("code") or 0,
            data.get("file") or "",
            data.get("line") or 0,
            data.get("class") or "Exception",
        )
        flattened.set_status_code(data.get("status_code") or 500)
        flattened.set_headers(data.get("headers") or {})
        flattened.set_trace(data.get("trace") or [])

        previous = data.get("previous")
        if isinstance(previous, dict):
            flattened.set_previous(cls.from_dict(previous))
        return flattened

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> int:
        return self._code

    @property
    def file(self) -> str:
        return self._file

    @property
    def line(self) -> int:
        return self._line

    @property
    def class_name(self) -> str:
        return self._class_name

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def trace(self) -> list[dict[str, Any]]:
        return [_copy_frame(frame) for frame in self._trace]

    @property
    def previous(self) -> Optional["FlattenException"]:
        return self._previous

    def set_previous(self, previous: Optional["FlattenException"]) -> "FlattenException":
        self._previous = previous
        return self

    def set_status_code(self, status_code: int) -> "FlattenException":
        self._status_code = status_code
        return self

    def set_headers(self, headers: dict[str, str]) -> "FlattenException":
        self._headers = dict(headers)
        return self

    def set_trace(self, trace: list[dict[str, Any]]) -> "FlattenException":
        self._trace = sanitize_trace(trace)
        return self

    def chain(self) -> list["FlattenException"]:
        """This snapshot followed by every previous one."""
        links = []
        link: Optional[FlattenException] = self
        while link is not None:
            links.append(link)
            link = link._previous
        return links

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def get_trace_as_string(self) -> str:
        output = ""
        for i, frame in enumerate(self._trace):
            function = frame.get("function", "")
            if "class" in frame:
                function = f"{frame['class']}{frame.get('type', '.')}{function}"
            file = frame.get("file", "[internal function]")
            line = frame.get("line", "")
            output += f"#{i} {file}({line}): {function}()\n"
        return output

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self._message,
            "code": self._code,
            "file": self._file,
            "line": self._line,
            "class": self._class_name,
            "status_code": self._status_code,
            "headers": dict(self._headers),
            "trace": self.trace,
            "previous": self._previous.to_dict() if self._previous is not None else None,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlattenException):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"FlattenException(class_name={self._class_name!r}, message={self._message!r}, "
            f"status_code={self._status_code})"
        )


def _copy_frame(frame: dict[str, Any]) -> dict[str, Any]:
    copy = dict(frame)
    if "args" in copy:
        copy["args"] = list(copy["args"])
    return copy
