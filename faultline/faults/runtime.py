"""
Faultline Faults - Host runtime adapters.

Connects the fault engine to the interpreter's reporting facilities:
- recoverable errors: ``warnings.showwarning``
- uncaught faults: ``sys.excepthook``
- process termination: ``atexit``

``ProcessRuntime`` writes to a terminal stream. ``BufferedRuntime``
captures status, headers and output in memory for server embeddings
and tests.
"""

from __future__ import annotations

import atexit
import logging
import sys
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, TextIO, Union

from .core import ErrorLevel


logger = logging.getLogger("faultline.runtime")

ErrorHook = Callable[[int, str, str, int], bool]
FaultHook = Callable[[BaseException], None]
ShutdownHook = Callable[[], None]


# ============================================================================
# Warning categories
# ============================================================================

class ErrorWarning(UserWarning):
    """Warning category carrying an explicit error level."""
    level: ErrorLevel = ErrorLevel.USER_WARNING


class UserErrorWarning(ErrorWarning):
    level = ErrorLevel.USER_ERROR


class UserNoticeWarning(ErrorWarning):
    level = ErrorLevel.USER_NOTICE


class UserDeprecatedWarning(ErrorWarning):
    level = ErrorLevel.USER_DEPRECATED


_USER_CATEGORIES: dict[int, type[ErrorWarning]] = {
    ErrorLevel.USER_ERROR: UserErrorWarning,
    ErrorLevel.USER_WARNING: ErrorWarning,
    ErrorLevel.USER_NOTICE: UserNoticeWarning,
    ErrorLevel.USER_DEPRECATED: UserDeprecatedWarning,
}

# Most specific first
_CATEGORY_LEVELS: list[tuple[type[Warning], ErrorLevel]] = [
    (DeprecationWarning, ErrorLevel.DEPRECATED),
    (PendingDeprecationWarning, ErrorLevel.DEPRECATED),
    (SyntaxWarning, ErrorLevel.COMPILE_WARNING),
    (ImportWarning, ErrorLevel.CORE_WARNING),
    (ResourceWarning, ErrorLevel.NOTICE),
    (BytesWarning, ErrorLevel.NOTICE),
    (RuntimeWarning, ErrorLevel.WARNING),
    (FutureWarning, ErrorLevel.USER_DEPRECATED),
    (UserWarning, ErrorLevel.USER_WARNING),
]


def level_for_warning(category: type[Warning], message: Any = None) -> ErrorLevel:
    """Map a warning category (or an ErrorWarning instance) to an error level."""
    level = getattr(message, "level", None)
    if isinstance(level, int) and not isinstance(level, bool):
        return ErrorLevel(level)
    if isinstance(category, type) and issubclass(category, ErrorWarning):
        return ErrorLevel(category.level)
    for klass, mapped in _CATEGORY_LEVELS:
        if isinstance(category, type) and issubclass(category, klass):
            return mapped
    return ErrorLevel.WARNING


def level_for_exception(exc: BaseException) -> ErrorLevel:
    """Error level recorded for a fault that could not be reported."""
    if isinstance(exc, SyntaxError):
        return ErrorLevel.PARSE
    if isinstance(exc, SystemError):
        return ErrorLevel.CORE_ERROR
    return ErrorLevel.ERROR


# ============================================================================
# Records
# ============================================================================

@dataclass(frozen=True, slots=True)
class LastError:
    """The most recent error the runtime could not hand off."""
    level: int
    message: str
    file: str = ""
    line: int = 0
    exception: Optional[BaseException] = None

    @property
    def type(self) -> int:
        return self.level


@dataclass(slots=True)
class HookHandle:
    """Installed hooks and what they replaced."""
    error_hook: ErrorHook
    fault_hook: FaultHook
    shutdown_hook: ShutdownHook
    previous_showwarning: Any = None
    previous_excepthook: Any = None
    showwarning: Any = None
    excepthook: Any = None
    warning_filter: Optional[tuple] = None
    active: bool = True


# ============================================================================
# HostRuntime
# ============================================================================

class HostRuntime(ABC):
    """Interface between the fault engine and the interpreter."""

    @abstractmethod
    def install(
        self,
        error_hook: ErrorHook,
        fault_hook: FaultHook,
        shutdown_hook: ShutdownHook,
    ) -> HookHandle:
        """Install the three hooks and return a handle for ``uninstall``."""

    @abstractmethod
    def uninstall(self, handle: HookHandle) -> None:
        """Restore whatever ``install`` replaced."""

    @abstractmethod
    def error_reporting(self) -> ErrorLevel:
        """Active reporting mask."""

    @abstractmethod
    def last_error(self) -> Optional[LastError]:
        ...

    @abstractmethod
    def record_error(
        self,
        level: int,
        message: str,
        file: str = "",
        line: int = 0,
        exception: Optional[BaseException] = None,
    ) -> None:
        ...

    @abstractmethod
    def is_cli(self) -> bool:
        ...

    @abstractmethod
    def headers_sent(self) -> bool:
        ...

    @abstractmethod
    def set_status(self, code: int) -> None:
        ...

    @abstractmethod
    def set_header(self, name: str, value: str) -> None:
        ...

    @abstractmethod
    def write(self, text: str) -> None:
        ...


class ProcessRuntime(HostRuntime):
    """
    Runtime bound to the current interpreter process.

    Args:
        stream: Output stream for rendered faults (``sys.stderr`` when None)
        error_reporting: Reporting mask (an ErrorLevel, int or level names)
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        error_reporting: Union[int, str] = ErrorLevel.ALL,
    ):
        self._stream = stream
        self._error_reporting = ErrorLevel.parse(error_reporting)
        self._last_error: Optional[LastError] = None

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def install(
        self,
        error_hook: ErrorHook,
        fault_hook: FaultHook,
        shutdown_hook: ShutdownHook,
    ) -> HookHandle:
        handle = HookHandle(
            error_hook=error_hook,
            fault_hook=fault_hook,
            shutdown_hook=shutdown_hook,
            previous_showwarning=warnings.showwarning,
            previous_excepthook=sys.excepthook,
        )

        def showwarning(message, category, filename, lineno, file=None, line=None):
            level = level_for_warning(category, message)
            text = str(message)
            if not error_hook(level, text, filename, lineno):
                self.record_error(level, text, filename, lineno)
                handle.previous_showwarning(message, category, filename, lineno, file, line)

        def excepthook(exc_type, exc, tb):
            if not isinstance(exc, Exception):
                handle.previous_excepthook(exc_type, exc, tb)
                return
            try:
                fault_hook(exc)
            except Exception:
                logger.error("Fault hook failed", exc_info=True)
                self._record_exception(exc)

        handle.showwarning = showwarning
        handle.excepthook = excepthook

        warnings.simplefilter("always", ErrorWarning)
        handle.warning_filter = warnings.filters[0]
        warnings.showwarning = showwarning
        sys.excepthook = excepthook
        atexit.register(shutdown_hook)

        logger.debug("Installed fault hooks")
        return handle

    def uninstall(self, handle: HookHandle) -> None:
        if not handle.active:
            return

        if warnings.showwarning is handle.showwarning:
            warnings.showwarning = handle.previous_showwarning
        if sys.excepthook is handle.excepthook:
            sys.excepthook = handle.previous_excepthook
        if handle.warning_filter in warnings.filters:
            warnings.filters.remove(handle.warning_filter)
        atexit.unregister(handle.shutdown_hook)

        handle.active = False
        logger.debug("Uninstalled fault hooks")

    # ------------------------------------------------------------------
    # Reporting state
    # ------------------------------------------------------------------

    def error_reporting(self) -> ErrorLevel:
        return self._error_reporting

    def set_error_reporting(self, level: Union[int, str]) -> ErrorLevel:
        """Replace the reporting mask, returning the previous one."""
        previous = self._error_reporting
        self._error_reporting = ErrorLevel.parse(level)
        return previous

    def last_error(self) -> Optional[LastError]:
        return self._last_error

    def record_error(
        self,
        level: int,
        message: str,
        file: str = "",
        line: int = 0,
        exception: Optional[BaseException] = None,
    ) -> None:
        self._last_error = LastError(level, message, file, line, exception)

    def clear_last_error(self) -> None:
        self._last_error = None

    def _record_exception(self, exc: BaseException) -> None:
        from .flatten import exception_location, exception_message

        file, line = exception_location(exc)
        self.record_error(level_for_exception(exc), exception_message(exc), file, line, exc)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def is_cli(self) -> bool:
        from ..debug.core import Debug
        return Debug.is_cli()

    def headers_sent(self) -> bool:
        # A terminal stream has no header phase
        return True

    def set_status(self, code: int) -> None:
        pass

    def set_header(self, name: str, value: str) -> None:
        pass

    def write(self, text: str) -> None:
        stream = self.stream
        stream.write(text)
        stream.flush()


class BufferedRuntime(ProcessRuntime):
    """
    Non-interactive runtime that captures what a response would carry.

    Example:
        ```python
        runtime = BufferedRuntime()
        engine = FaultEngine(runtime=runtime)
        engine.handle_exception(ValueError("bad"))
        runtime.status   # 500
        runtime.output   # rendered page
        ```
    """

    def __init__(self, error_reporting: Union[int, str] = ErrorLevel.ALL, cli: bool = False):
        super().__init__(stream=None, error_reporting=error_reporting)
        self._cli = cli
        self._chunks: list[str] = []
        self._headers_sent = False
        self.status: Optional[int] = None
        self.headers: dict[str, str] = {}

    @property
    def output(self) -> str:
        return "".join(self._chunks)

    def is_cli(self) -> bool:
        return self._cli

    def headers_sent(self) -> bool:
        return self._headers_sent

    def set_status(self, code: int) -> None:
        if not self._headers_sent:
            self.status = code

    def set_header(self, name: str, value: str) -> None:
        if not self._headers_sent:
            self.headers[name] = value

    def write(self, text: str) -> None:
        self._headers_sent = True
        self._chunks.append(text)

    def reset(self) -> None:
        """Discard captured output, status and headers."""
        self._chunks.clear()
        self._headers_sent = False
        self.status = None
        self.headers.clear()


# ============================================================================
# trigger_error
# ============================================================================

def trigger_error(message: str, level: int = ErrorLevel.USER_NOTICE, stacklevel: int = 2) -> bool:
    """
    Raise a user-level error through the recoverable-error hook.

    Args:
        message: Error message
        level: One of USER_ERROR, USER_WARNING, USER_NOTICE, USER_DEPRECATED
        stacklevel: Passed to ``warnings.warn`` (2 points at the caller)

    Raises:
        ValueError: If ``level`` is not a user level
        FatalError: If the installed engine escalates a USER_ERROR
    """
    category = _USER_CATEGORIES.get(level)
    if category is None:
        raise ValueError(
            "Invalid error level for trigger_error(); expected USER_ERROR, "
            "USER_WARNING, USER_NOTICE or USER_DEPRECATED"
        )
    warnings.warn(message, category, stacklevel=stacklevel)
    return True
