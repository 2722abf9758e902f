"""
Faultline Faults - Severity taxonomy.

Defines:
- ErrorLevel flags (severity of a recoverable or fatal error report)
- Fatal-class severity sets used for escalation and shutdown detection
- Severity → logging level mapping (with a NOTICE level)
"""

from __future__ import annotations

import logging
from enum import IntFlag
from typing import Union


# ============================================================================
# Logging levels
# ============================================================================

NOTICE = 25
"""Normal but significant condition, between INFO and WARNING."""

logging.addLevelName(NOTICE, "NOTICE")


# ============================================================================
# ErrorLevel
# ============================================================================

class ErrorLevel(IntFlag):
    """
    Error severity flags.

    Values are bit flags so a reporting threshold can be expressed as a
    mask (``ErrorLevel.ALL & ~ErrorLevel.DEPRECATED``).
    """
    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024
    STRICT = 2048
    RECOVERABLE_ERROR = 4096
    DEPRECATED = 8192
    USER_DEPRECATED = 16384
    ALL = 32767

    @classmethod
    def parse(cls, value: Union[int, str, "ErrorLevel"]) -> "ErrorLevel":
        """
        Parse a level mask from configuration.

        Accepts an int, a single name, or names joined with ``|``.
        A name prefixed with ``~`` is removed from the mask built so far.

        Example:
            >>> ErrorLevel.parse("ALL|~DEPRECATED") == ErrorLevel.ALL & ~ErrorLevel.DEPRECATED
            True
        """
        if isinstance(value, bool):
            raise ValueError(f"Invalid error level: {value!r}")
        if isinstance(value, int):
            return cls(value)

        text = str(value).strip()
        if text.lstrip("-").isdigit():
            return cls(int(text))

        mask = cls(0)
        for part in text.split("|"):
            name = part.strip().upper()
            if not name:
                continue
            negate = name.startswith("~")
            name = name.lstrip("~").strip()
            if name.startswith("E_"):
                name = name[2:]
            try:
                flag = cls[name]
            except KeyError:
                raise ValueError(f"Unknown error level: {part.strip()!r}") from None
            mask = (mask & ~flag) if negate else (mask | flag)
        return mask


LEVEL_NAMES: dict[int, str] = {
    ErrorLevel.ERROR: "ERROR",
    ErrorLevel.WARNING: "WARNING",
    ErrorLevel.PARSE: "PARSE",
    ErrorLevel.NOTICE: "NOTICE",
    ErrorLevel.CORE_ERROR: "CORE_ERROR",
    ErrorLevel.CORE_WARNING: "CORE_WARNING",
    ErrorLevel.COMPILE_ERROR: "COMPILE_ERROR",
    ErrorLevel.COMPILE_WARNING: "COMPILE_WARNING",
    ErrorLevel.USER_ERROR: "USER_ERROR",
    ErrorLevel.USER_WARNING: "USER_WARNING",
    ErrorLevel.USER_NOTICE: "USER_NOTICE",
    ErrorLevel.RECOVERABLE_ERROR: "RECOVERABLE_ERROR",
    ErrorLevel.DEPRECATED: "DEPRECATED",
    ErrorLevel.USER_DEPRECATED: "USER_DEPRECATED",
}

SEVERITY_NAMES: dict[int, str] = {
    ErrorLevel.ERROR: "Fatal Error",
    ErrorLevel.WARNING: "Warning",
    ErrorLevel.PARSE: "Parse Error",
    ErrorLevel.NOTICE: "Notice",
    ErrorLevel.CORE_ERROR: "Core Error",
    ErrorLevel.CORE_WARNING: "Core Warning",
    ErrorLevel.COMPILE_ERROR: "Compile Error",
    ErrorLevel.COMPILE_WARNING: "Compile Warning",
    ErrorLevel.USER_ERROR: "User Error",
    ErrorLevel.USER_WARNING: "User Warning",
    ErrorLevel.USER_NOTICE: "User Notice",
    ErrorLevel.RECOVERABLE_ERROR: "Recoverable Error",
    ErrorLevel.DEPRECATED: "Deprecated",
    ErrorLevel.USER_DEPRECATED: "User Deprecated",
}


# ============================================================================
# Fatal-class severity sets
# ============================================================================

# Recoverable reports at these levels are converted into a raised FatalError.
ESCALATING_LEVELS = frozenset({
    ErrorLevel.ERROR,
    ErrorLevel.CORE_ERROR,
    ErrorLevel.COMPILE_ERROR,
    ErrorLevel.USER_ERROR,
})

# Last errors at these levels are reported by the shutdown hook.
# USER_ERROR is absent: user errors always escalate synchronously.
SHUTDOWN_FATAL_LEVELS = frozenset({
    ErrorLevel.ERROR,
    ErrorLevel.CORE_ERROR,
    ErrorLevel.COMPILE_ERROR,
    ErrorLevel.PARSE,
})

FATAL_LEVELS = frozenset({
    ErrorLevel.ERROR,
    ErrorLevel.CORE_ERROR,
    ErrorLevel.COMPILE_ERROR,
    ErrorLevel.USER_ERROR,
    ErrorLevel.RECOVERABLE_ERROR,
})


# ============================================================================
# Severity → logging level
# ============================================================================

_LOG_LEVELS: dict[int, int] = {
    ErrorLevel.ERROR: logging.ERROR,
    ErrorLevel.CORE_ERROR: logging.ERROR,
    ErrorLevel.COMPILE_ERROR: logging.ERROR,
    ErrorLevel.USER_ERROR: logging.ERROR,
    ErrorLevel.RECOVERABLE_ERROR: logging.ERROR,
    ErrorLevel.WARNING: logging.WARNING,
    ErrorLevel.CORE_WARNING: logging.WARNING,
    ErrorLevel.COMPILE_WARNING: logging.WARNING,
    ErrorLevel.USER_WARNING: logging.WARNING,
    ErrorLevel.NOTICE: NOTICE,
    ErrorLevel.USER_NOTICE: NOTICE,
    ErrorLevel.DEPRECATED: logging.INFO,
    ErrorLevel.USER_DEPRECATED: logging.INFO,
}


def log_level_for(level: int) -> int:
    """Map an error severity to a ``logging`` level (DEBUG if unknown)."""
    return _LOG_LEVELS.get(level, logging.DEBUG)


def level_name(level: int) -> str:
    """Constant-style name of a severity, ``UNKNOWN`` if not a single level."""
    return LEVEL_NAMES.get(level, "UNKNOWN")


def severity_name(level: int) -> str:
    """Human-readable severity name, ``Unknown Error`` if not a single level."""
    return SEVERITY_NAMES.get(level, "Unknown Error")
