"""
Faultline Faults - Fatal error types.

Provides concrete error classes for conditions reported at severity level:
- FatalError: a severity-level error converted into an exception
- OutOfMemoryError
- ClassNotFoundError
- UndefinedFunctionError
- UndefinedMethodError

``enhance_error`` turns a recorded last error into the most specific type.
"""

from __future__ import annotations

import difflib
import inspect
import re
import resource
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from .core import ErrorLevel, FATAL_LEVELS, severity_name

if TYPE_CHECKING:
    from .runtime import LastError


# ============================================================================
# FatalError
# ============================================================================

class FatalError(Exception):
    """
    A severity-level error converted into an exception.

    Raised by the dispatcher when a recoverable error escalates, and built
    at shutdown from the last recorded error.
    """

    def __init__(
        self,
        message: str = "",
        code: int = 0,
        severity: int = ErrorLevel.ERROR,
        filename: str = "",
        line: int = 0,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.file = filename
        self.line = line
        self.context = dict(context or {})

    @property
    def severity_name(self) -> str:
        return severity_name(self.severity)

    @property
    def is_fatal(self) -> bool:
        return self.severity in FATAL_LEVELS

    def error_info(self) -> dict[str, Any]:
        """Error details as a plain dictionary."""
        return {
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "severity": int(self.severity),
            "severity_name": self.severity_name,
            "is_fatal": self.is_fatal,
            "context": dict(self.context),
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"severity={self.severity_name!r}, file={self.file!r}, line={self.line})"
        )


# ============================================================================
# OutOfMemoryError
# ============================================================================

def _address_space_limit() -> int:
    soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    if soft == resource.RLIM_INFINITY:
        return sys.maxsize
    return soft


class OutOfMemoryError(FatalError):
    """The process ran out of available memory."""

    def __init__(
        self,
        message: str = "",
        filename: str = "",
        line: int = 0,
        memory_limit: Optional[int] = None,
        memory_usage: Optional[int] = None,
    ):
        from ..debug.core import _current_rss

        self.memory_limit = memory_limit if memory_limit is not None else _address_space_limit()
        self.memory_usage = memory_usage if memory_usage is not None else _current_rss()
        super().__init__(
            message or "Fatal error: Allowed memory size exhausted",
            0,
            ErrorLevel.ERROR,
            filename,
            line,
        )

    @property
    def formatted_memory_limit(self) -> str:
        from ..debug.core import Debug
        return Debug.format_bytes(self.memory_limit)

    @property
    def formatted_memory_usage(self) -> str:
        from ..debug.core import Debug
        return Debug.format_bytes(self.memory_usage)

    def suggestions(self) -> list[str]:
        return [
            "Raise the address-space limit (ulimit -v) or the container memory limit",
            "Optimize your code to use less memory",
            "Process large datasets in smaller chunks",
            "Use generators instead of building whole lists in memory",
            "Delete large objects when no longer needed",
            "Check for reference cycles or caches growing inside loops",
            "Consider using external storage for large data sets",
        ]

    def error_info(self) -> dict[str, Any]:
        info = super().error_info()
        info.update({
            "memory_limit": self.memory_limit,
            "memory_usage": self.memory_usage,
            "memory_limit_formatted": self.formatted_memory_limit,
            "memory_usage_formatted": self.formatted_memory_usage,
            "suggestions": self.suggestions(),
        })
        return info


# ============================================================================
# ClassNotFoundError
# ============================================================================

class ClassNotFoundError(FatalError):
    """A class (or the module that should define it) could not be found."""

    def __init__(self, class_name: str, message: str = "", filename: str = "", line: int = 0):
        self.class_name = class_name
        super().__init__(
            message or f'Class "{class_name}" not found',
            0,
            ErrorLevel.ERROR,
            filename,
            line,
        )

    def suggestions(self) -> list[str]:
        return [
            "Check if the class name is spelled correctly",
            "Verify the module path is correct",
            "Ensure the module defining the class is importable",
            "Check if the required dependency is installed via pip",
            "Verify the package is on sys.path (installed or in the project root)",
        ]

    def error_info(self) -> dict[str, Any]:
        info = super().error_info()
        info.update({
            "class_name": self.class_name,
            "suggestions": self.suggestions(),
        })
        return info


# ============================================================================
# UndefinedFunctionError
# ============================================================================

# Module prefix → install hint
_PACKAGE_HINTS: dict[str, str] = {
    "np.": "Install numpy (pip install numpy) and import it as np",
    "numpy.": "Install numpy (pip install numpy)",
    "pd.": "Install pandas (pip install pandas) and import it as pd",
    "pandas.": "Install pandas (pip install pandas)",
    "yaml.": "Install PyYAML (pip install pyyaml)",
    "requests.": "Install requests (pip install requests)",
    "jinja2.": "Install Jinja2 (pip install jinja2)",
    "click.": "Install Click (pip install click)",
}


class UndefinedFunctionError(FatalError):
    """A function name could not be resolved."""

    def __init__(self, function_name: str, message: str = "", filename: str = "", line: int = 0):
        self.function_name = function_name
        super().__init__(
            message or f"Call to undefined function {function_name}()",
            0,
            ErrorLevel.ERROR,
            filename,
            line,
        )

    def suggestions(self) -> list[str]:
        suggestions = [
            "Check if the function name is spelled correctly",
            "Verify the function exists in the current scope",
            "Ensure the module containing the function is imported",
        ]
        suggestions.extend(self._package_suggestions())
        return suggestions

    def _package_suggestions(self) -> list[str]:
        for prefix, hint in _PACKAGE_HINTS.items():
            if self.function_name.startswith(prefix):
                return [hint]
        return []

    def error_info(self) -> dict[str, Any]:
        info = super().error_info()
        info.update({
            "function_name": self.function_name,
            "suggestions": self.suggestions(),
        })
        return info


# ============================================================================
# UndefinedMethodError
# ============================================================================

class UndefinedMethodError(FatalError):
    """A method is not defined on the target class."""

    def __init__(
        self,
        class_name: str,
        method_name: str,
        message: str = "",
        filename: str = "",
        line: int = 0,
        owner: Optional[type] = None,
    ):
        self.class_name = class_name
        self.method_name = method_name
        self.owner = owner
        super().__init__(
            message or f"Call to undefined method {class_name}.{method_name}()",
            0,
            ErrorLevel.ERROR,
            filename,
            line,
        )

    def suggestions(self) -> list[str]:
        suggestions = [
            "Check if the method name is spelled correctly",
            "Verify the method exists in the class or its parent classes",
            "Check if the method is public and accessible from current scope",
            "Ensure you're calling the method on the correct object type",
        ]
        similar = self.similar_methods()
        if similar:
            suggestions.append("Did you mean one of these methods: " + ", ".join(similar))
        return suggestions

    def similar_methods(self, limit: int = 5) -> list[str]:
        """Public methods of ``owner`` close to the missing name."""
        if self.owner is None:
            return []

        names = [
            name for name, member in inspect.getmembers(self.owner, callable)
            if not name.startswith("_")
        ]
        target = self.method_name.lower()
        lowered = {name.lower(): name for name in names}

        similar = [
            lowered[match]
            for match in difflib.get_close_matches(target, list(lowered), n=limit, cutoff=0.6)
        ]
        for name in names:
            low = name.lower()
            if (target in low or low in target) and name not in similar:
                similar.append(name)

        return [f"{name}()" for name in similar[:limit]]

    def error_info(self) -> dict[str, Any]:
        info = super().error_info()
        info.update({
            "class_name": self.class_name,
            "method_name": self.method_name,
            "suggestions": self.suggestions(),
        })
        return info


# ============================================================================
# enhance_error - last error → specific FatalError
# ============================================================================

@dataclass(frozen=True, slots=True)
class ErrorMapping:
    """Maps a recorded error to a FatalError factory."""
    matches: Callable[["LastError"], bool]
    error_factory: Callable[["LastError"], FatalError]


def _exception_of(kind: type[BaseException]) -> Callable[["LastError"], bool]:
    return lambda error: isinstance(error.exception, kind)


def _message_matches(pattern: str) -> Callable[["LastError"], bool]:
    regex = re.compile(pattern)
    return lambda error: error.exception is None and regex.search(error.message) is not None


def _undefined_method(error: "LastError") -> FatalError:
    exc = error.exception
    owner = type(exc.obj) if getattr(exc, "obj", None) is not None else None
    class_name = owner.__name__ if owner is not None else "object"
    return UndefinedMethodError(
        class_name, exc.name or "", error.message, error.file, error.line, owner=owner,
    )


def _undefined_method_from_message(error: "LastError") -> FatalError:
    match = re.search(r"'(\w+)' object has no attribute '(\w+)'", error.message)
    return UndefinedMethodError(match.group(1), match.group(2), error.message, error.file, error.line)


def _undefined_function_from_message(error: "LastError") -> FatalError:
    match = re.search(r"name '([\w.]+)' is not defined", error.message)
    return UndefinedFunctionError(match.group(1), error.message, error.file, error.line)


def _class_not_found_from_message(error: "LastError") -> FatalError:
    match = re.search(r"No module named '([\w.]+)'", error.message)
    return ClassNotFoundError(match.group(1), error.message, error.file, error.line)


DEFAULT_MAPPINGS: list[ErrorMapping] = [
    ErrorMapping(
        _exception_of(MemoryError),
        lambda e: OutOfMemoryError(e.message, e.file, e.line),
    ),
    ErrorMapping(
        lambda e: isinstance(e.exception, AttributeError) and getattr(e.exception, "name", None),
        _undefined_method,
    ),
    ErrorMapping(
        lambda e: isinstance(e.exception, NameError) and getattr(e.exception, "name", None),
        lambda e: UndefinedFunctionError(e.exception.name, e.message, e.file, e.line),
    ),
    ErrorMapping(
        lambda e: isinstance(e.exception, ImportError) and getattr(e.exception, "name", None),
        lambda e: ClassNotFoundError(e.exception.name, e.message, e.file, e.line),
    ),
    ErrorMapping(
        _message_matches(r"(?i)out of memory|memory size exhausted|MemoryError"),
        lambda e: OutOfMemoryError(e.message, e.file, e.line),
    ),
    ErrorMapping(
        _message_matches(r"'\w+' object has no attribute '\w+'"),
        _undefined_method_from_message,
    ),
    ErrorMapping(
        _message_matches(r"name '[\w.]+' is not defined"),
        _undefined_function_from_message,
    ),
    ErrorMapping(
        _message_matches(r"No module named '[\w.]+'"),
        _class_not_found_from_message,
    ),
]


def enhance_error(error: "LastError", mappings: Optional[list[ErrorMapping]] = None) -> FatalError:
    """
    Build the most specific FatalError for a recorded last error.

    Args:
        error: Last error recorded by the host runtime
        mappings: Mapping table (defaults to ``DEFAULT_MAPPINGS``)

    Returns:
        A FatalError subclass instance, or a plain FatalError when no
        mapping matches
    """
    for mapping in mappings if mappings is not None else DEFAULT_MAPPINGS:
        if mapping.matches(error):
            enhanced = mapping.error_factory(error)
            if error.exception is not None:
                enhanced.__cause__ = error.exception
            return enhanced

    fatal = FatalError(error.message, 0, error.level, error.file, error.line)
    if error.exception is not None:
        fatal.__cause__ = error.exception
    return fatal
