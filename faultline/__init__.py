"""
Faultline - Fault interception and reporting for Python processes.

Turns warnings, uncaught exceptions and fatal shutdown errors into
FlattenException snapshots, logs them and renders them for a terminal,
an HTML page or a JSON response.

Usage:
    ```python
    from faultline import FaultEngine, CliErrorRenderer

    FaultEngine(renderer=CliErrorRenderer(debug=True), debug=True).register()
    ```
"""

import logging

from .faults import (
    ErrorLevel,
    FatalError,
    OutOfMemoryError,
    ClassNotFoundError,
    UndefinedFunctionError,
    UndefinedMethodError,
    FlattenException,
    HostRuntime,
    ProcessRuntime,
    BufferedRuntime,
    LastError,
    trigger_error,
    FaultEngine,
    get_default_engine,
)
from .debug import Debug, ValueInspector, describe, format_value
from .renderers import (
    ErrorRenderer,
    PlainTextRenderer,
    CliErrorRenderer,
    HtmlErrorRenderer,
    JsonErrorRenderer,
    create_renderer,
)
from .config import ConfigLoader, ConfigError, FaultlineConfig, load_config

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ErrorLevel",
    "FatalError",
    "OutOfMemoryError",
    "ClassNotFoundError",
    "UndefinedFunctionError",
    "UndefinedMethodError",
    "FlattenException",
    "HostRuntime",
    "ProcessRuntime",
    "BufferedRuntime",
    "LastError",
    "trigger_error",
    "FaultEngine",
    "get_default_engine",
    "Debug",
    "ValueInspector",
    "describe",
    "format_value",
    "ErrorRenderer",
    "PlainTextRenderer",
    "CliErrorRenderer",
    "HtmlErrorRenderer",
    "JsonErrorRenderer",
    "create_renderer",
    "ConfigLoader",
    "ConfigError",
    "FaultlineConfig",
    "load_config",
    "__version__",
]
