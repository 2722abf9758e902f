"""
Faultline Faults - Fault Engine.

The FaultEngine is the process-wide fault dispatcher that:
1. Receives recoverable errors, uncaught exceptions and shutdown checks
2. Normalizes them into FlattenException snapshots
3. Logs them with structured ``fault_context``
4. Renders uncaught faults and writes them through the host runtime
5. Degrades to a fixed minimal message when reporting itself fails

State:
- Idle → Registered (``register()``) → Idle (``unregister()``)
- A one-way fatal latch so shutdown reporting runs at most once
- A reserved memory margin released before fatal handling
"""

from __future__ import annotations

import logging
import threading
import traceback
from typing import Any, Optional, Union

from .core import (
    ESCALATING_LEVELS,
    SHUTDOWN_FATAL_LEVELS,
    level_name,
    log_level_for,
)
from .domains import FatalError, enhance_error
from .flatten import FlattenException, exception_message
from .runtime import HookHandle, HostRuntime, ProcessRuntime
from ..renderers.base import ErrorRenderer, PlainTextRenderer


DEFAULT_RESERVED_MEMORY_SLOTS = 10240

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class FaultEngine:
    """
    Process-wide fault dispatcher.

    Responsibilities:
    1. Install the recoverable-error, uncaught-fault and shutdown hooks
    2. Filter recoverable errors through the reporting mask
    3. Escalate fatal-class recoverable errors to FatalError
    4. Log, render and write uncaught faults
    5. Report the last fatal error once at shutdown

    Usage:
        ```python
        engine = FaultEngine(renderer=CliErrorRenderer(debug=True), debug=True)
        engine.register()

        # ... application code ...

        engine.unregister()
        ```
    """

    def __init__(
        self,
        *,
        logger: Optional[LoggerLike] = None,
        renderer: Optional[ErrorRenderer] = None,
        debug: bool = False,
        runtime: Optional[HostRuntime] = None,
        reserved_memory_slots: int = DEFAULT_RESERVED_MEMORY_SLOTS,
    ):
        """
        Initialize fault engine.

        Args:
            logger: Logger for fault records (``faultline.faults`` if None)
            renderer: Renderer for uncaught faults (PlainTextRenderer if None)
            debug: Debug mode (default display of recoverable errors,
                detailed fallback output)
            runtime: Host runtime adapter (ProcessRuntime if None)
            reserved_memory_slots: Size of the margin reserved on register
        """
        self._logger: LoggerLike = logger or logging.getLogger("faultline.faults")
        self._renderer: ErrorRenderer = renderer or PlainTextRenderer()
        self._debug = debug
        self._runtime: HostRuntime = runtime or ProcessRuntime()
        self._reserved_memory_slots = reserved_memory_slots

        self._lock = threading.Lock()
        self._is_handling_fatal = False
        self._reserved_memory: list[str] = []
        self._handle: Optional[HookHandle] = None

    @classmethod
    def from_config(cls, config: Any, runtime: Optional[HostRuntime] = None) -> "FaultEngine":
        """
        Build an engine from a FaultlineConfig.

        Args:
            config: FaultlineConfig instance
            runtime: Host runtime (a ProcessRuntime using the configured
                reporting mask if None)
        """
        from ..renderers import create_renderer

        logger = logging.getLogger(config.logger_name)
        if config.log_level:
            logger.setLevel(config.log_level)

        return cls(
            logger=logger,
            renderer=create_renderer(config.renderer, debug=config.debug, colors=config.colors),
            debug=config.debug,
            runtime=runtime or ProcessRuntime(error_reporting=config.error_reporting),
            reserved_memory_slots=config.reserved_memory_slots,
        )

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    def debug(self, value: bool):
        self._debug = value

    @property
    def logger(self) -> LoggerLike:
        return self._logger

    @logger.setter
    def logger(self, logger: LoggerLike):
        with self._lock:
            self._logger = logger

    @property
    def renderer(self) -> ErrorRenderer:
        return self._renderer

    @renderer.setter
    def renderer(self, renderer: ErrorRenderer):
        with self._lock:
            self._renderer = renderer

    @property
    def runtime(self) -> HostRuntime:
        return self._runtime

    @property
    def is_registered(self) -> bool:
        return self._handle is not None

    # ========================================================================
    # Registration
    # ========================================================================

    def register(self) -> "FaultEngine":
        """Install the hooks and reserve the memory margin."""
        if self._handle is None:
            self._handle = self._runtime.install(
                self.handle_error,
                self.handle_exception,
                self.handle_fatal_error,
            )
        self._reserved_memory = ["x"] * self._reserved_memory_slots
        self._logger.debug("Fault engine registered")
        return self

    def unregister(self) -> "FaultEngine":
        """Restore the hooks replaced by ``register``."""
        if self._handle is not None:
            self._runtime.uninstall(self._handle)
            self._handle = None
            self._logger.debug("Fault engine unregistered")
        return self

    # ========================================================================
    # Recoverable errors
    # ========================================================================

    def handle_error(self, level: int, message: str, file: str = "", line: int = 0) -> bool:
        """
        Handle a recoverable error.

        Returns:
            False when the level is not reported (nothing is logged),
            otherwise ``not debug``: True suppresses the default display

        Raises:
            FatalError: If the level is in the escalating set
        """
        if not (self._runtime.error_reporting() & level):
            return False

        context = {
            "level": int(level),
            "level_name": level_name(level),
            "file": file,
            "line": line,
        }
        self._logger.log(log_level_for(level), message, extra={"fault_context": context})

        if level in ESCALATING_LEVELS:
            raise FatalError(message, 0, level, file, line)

        return not self._debug

    # ========================================================================
    # Uncaught faults
    # ========================================================================

    def handle_exception(self, exc: BaseException) -> None:
        """Log, render and write an uncaught fault. Never raises."""
        try:
            flattened = FlattenException.create_from(exc)
            self._log_exception(exc, flattened)

            output = self._renderer.render(flattened)

            if not self._runtime.is_cli() and not self._runtime.headers_sent():
                self._runtime.set_status(500)
                self._runtime.set_header(
                    "Content-Type",
                    getattr(self._renderer, "content_type", "text/html; charset=utf-8"),
                )

            self._runtime.write(output)
        except Exception as render_error:
            self._fallback(exc, render_error)

    def _log_exception(self, exc: BaseException, flattened: FlattenException):
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self._logger.critical(
            f"Uncaught {flattened.class_name}: {flattened.message}",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={
                "fault_context": {
                    "exception": exc,
                    "file": flattened.file,
                    "line": flattened.line,
                    "trace": trace,
                },
            },
        )

    def _fallback(self, exc: BaseException, error: BaseException):
        output = "Internal Server Error\n"
        if self._debug:
            output += f"Original: {exception_message(exc)}\n"
            output += f"Render Error: {exception_message(error)}\n"

        try:
            self._logger.error("Fault reporting failed", exc_info=error)
        except Exception:
            pass

        self._write_quietly(output)

    def _write_quietly(self, output: str):
        try:
            self._runtime.write(output)
        except Exception:
            # The sink is gone; there is nowhere left to report to
            pass

    # ========================================================================
    # Shutdown
    # ========================================================================

    def handle_fatal_error(self) -> None:
        """Report the last fatal error once, at shutdown."""
        # Release the margin before anything else allocates
        self._reserved_memory = []

        with self._lock:
            if self._is_handling_fatal:
                return

            error = self._runtime.last_error()
            if error is None or error.level not in SHUTDOWN_FATAL_LEVELS:
                return

            self._is_handling_fatal = True

        try:
            self.handle_exception(enhance_error(error))
        except Exception:
            self._write_quietly(f"Fatal Error: {error.message or 'Unknown error'}\n")

    # ========================================================================
    # Debugging & Inspection
    # ========================================================================

    def get_stats(self) -> dict[str, Any]:
        """
        Get fault engine statistics.

        Returns:
            Dictionary with engine stats
        """
        return {
            "registered": self.is_registered,
            "debug": self._debug,
            "fatal_latched": self._is_handling_fatal,
            "reserved_memory_slots": len(self._reserved_memory),
            "renderer": type(self._renderer).__name__,
            "runtime": type(self._runtime).__name__,
        }


# ============================================================================
# Convenience Functions
# ============================================================================

# Global fault engine instance (for convenience)
_default_engine: Optional[FaultEngine] = None
_default_lock = threading.Lock()


def get_default_engine() -> FaultEngine:
    """
    Get or create the default global fault engine.

    Built from ``ConfigLoader.load()`` on first use.

    Returns:
        Global FaultEngine instance
    """
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            from ..config import ConfigLoader
            _default_engine = FaultEngine.from_config(ConfigLoader.load().get_config())
        return _default_engine


def set_default_engine(engine: Optional[FaultEngine]) -> None:
    """Replace (or with None, reset) the default global fault engine."""
    global _default_engine
    with _default_lock:
        _default_engine = engine
