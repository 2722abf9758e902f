"""
Faultline Faults - Fault normalization and dispatch.

Faults reach the engine three ways:
- recoverable errors (warnings and ``trigger_error``)
- uncaught exceptions (``sys.excepthook``)
- fatal errors detected at interpreter shutdown (``atexit``)

Core exports:
- ErrorLevel: Severity flags and reporting masks
- FatalError: Severity-level error converted to an exception
- FlattenException: Serializable snapshot of an exception chain
- ProcessRuntime / BufferedRuntime: Host runtime adapters
- FaultEngine: Process-wide fault dispatcher
"""

from .core import (
    ErrorLevel,
    ESCALATING_LEVELS,
    SHUTDOWN_FATAL_LEVELS,
    FATAL_LEVELS,
    NOTICE,
    log_level_for,
    level_name,
    severity_name,
)

from .domains import (
    FatalError,
    OutOfMemoryError,
    ClassNotFoundError,
    UndefinedFunctionError,
    UndefinedMethodError,
    ErrorMapping,
    enhance_error,
)

from .flatten import FlattenException

from .runtime import (
    HostRuntime,
    ProcessRuntime,
    BufferedRuntime,
    LastError,
    HookHandle,
    ErrorWarning,
    UserErrorWarning,
    UserNoticeWarning,
    UserDeprecatedWarning,
    trigger_error,
)

from .engine import (
    FaultEngine,
    get_default_engine,
    set_default_engine,
)

__all__ = [
    # Severity
    "ErrorLevel",
    "ESCALATING_LEVELS",
    "SHUTDOWN_FATAL_LEVELS",
    "FATAL_LEVELS",
    "NOTICE",
    "log_level_for",
    "level_name",
    "severity_name",
    # Fatal errors
    "FatalError",
    "OutOfMemoryError",
    "ClassNotFoundError",
    "UndefinedFunctionError",
    "UndefinedMethodError",
    "ErrorMapping",
    "enhance_error",
    # Snapshot
    "FlattenException",
    # Runtime
    "HostRuntime",
    "ProcessRuntime",
    "BufferedRuntime",
    "LastError",
    "HookHandle",
    "ErrorWarning",
    "UserErrorWarning",
    "UserNoticeWarning",
    "UserDeprecatedWarning",
    "trigger_error",
    # Engine
    "FaultEngine",
    "get_default_engine",
    "set_default_engine",
]
