"""
Config system - Layered typed configuration with validation.

Sources, later overriding earlier:
config files (YAML/JSON) < .env file < FAULTLINE_* environment < overrides
"""

from typing import Any, Dict, Optional, Type, Union, get_args, get_origin
from dataclasses import dataclass, fields, is_dataclass, MISSING
from pathlib import Path
import json
import logging
import os
import types

from dotenv import dotenv_values

from .faults.core import ErrorLevel


logger = logging.getLogger("faultline.config")

DEFAULT_CONFIG_FILES = ("faultline.yaml", "faultline.yml", "faultline.json")

RENDERERS = ("plain", "cli", "html", "json")


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class FaultlineConfig:
    """
    Settings for building a FaultEngine.

    Attributes:
        debug: Verbose rendering (traces, source context, memory)
        renderer: One of ``plain``, ``cli``, ``html``, ``json``
        colors: Force ANSI colors on or off (None detects the terminal)
        error_reporting: Reporting mask, e.g. ``"ALL|~DEPRECATED"``
        logger_name: Logger that receives fault records
        reserved_memory_slots: Size of the margin released on fatal shutdown
        log_level: Level applied to the fault logger (None leaves it alone)
    """
    debug: bool = False
    renderer: str = "cli"
    colors: Optional[bool] = None
    error_reporting: Union[int, str] = "ALL"
    logger_name: str = "faultline.faults"
    reserved_memory_slots: int = 10240
    log_level: Optional[str] = None

    def __post_init__(self):
        if self.renderer not in RENDERERS:
            raise ConfigError(
                f"Unknown renderer '{self.renderer}', expected one of {', '.join(RENDERERS)}"
            )

        value = self.error_reporting
        try:
            self.error_reporting = ErrorLevel.parse(int(value) if isinstance(value, bool) else value)
        except ValueError as e:
            raise ConfigError(f"Config field 'error_reporting' is invalid: {e}") from None

        self.reserved_memory_slots = int(self.reserved_memory_slots)
        if self.reserved_memory_slots < 0:
            raise ConfigError("Config field 'reserved_memory_slots' must be >= 0")

        if self.log_level is not None:
            level = logging.getLevelName(str(self.log_level).upper())
            if not isinstance(level, int):
                raise ConfigError(f"Unknown log level '{self.log_level}'")
            self.log_level = str(self.log_level).upper()


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "FAULTLINE_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "FAULTLINE_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources with proper merge strategy.

        Merge order (later overrides earlier):
        1. Config files (YAML or JSON, glob patterns supported)
        2. .env file (only keys with the prefix)
        3. Environment variables (FAULTLINE_* prefix)
        4. Manual overrides

        Without ``paths``, ``faultline.yaml``, ``faultline.yml`` or
        ``faultline.json`` in the working directory is used if present.

        Args:
            paths: List of config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if not paths:
            paths = [name for name in DEFAULT_CONFIG_FILES if Path(name).exists()][:1]

        for pattern in paths:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        matches = glob(pattern)
        if not matches and not any(ch in pattern for ch in "*?["):
            raise ConfigError(f"Config file not found: {pattern}")

        for path_str in sorted(matches):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                raise ConfigError(f"Unsupported config file type: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        self._merge_mapping(path, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if data:
            self._merge_mapping(path, data)

    def _merge_mapping(self, path: Path, data: Any):
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        self._merge_dict(self.config_data, data)
        logger.debug(f"Loaded config from {path}")

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert FAULTLINE_SECTION__KEY to nested dict."""
        key = key[len(self.env_prefix):]

        # Split by double underscore for nested keys
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        parts = path.split(".")
        current = self.config_data

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def get_config(self, config_class: Type = FaultlineConfig):
        """
        Validate the merged data into a config dataclass.

        Unknown keys are ignored.

        Raises:
            ConfigError: On a type mismatch or an invalid value
        """
        if not is_dataclass(config_class):
            raise ConfigError(f"{config_class.__name__} is not a dataclass")
        return self._instantiate_dataclass(config_class, self.config_data)

    def _instantiate_dataclass(self, config_class: Type, data: dict):
        """Instantiate dataclass config with validation."""
        kwargs = {}

        for field_info in fields(config_class):
            field_name = field_info.name
            field_type = field_info.type

            if field_name in data:
                value = data[field_name]

                if not self._check_type(value, field_type):
                    raise ConfigError(
                        f"Config field '{field_name}' expected {field_type}, "
                        f"got {type(value).__name__}"
                    )

                kwargs[field_name] = value
            elif field_info.default is not MISSING:
                kwargs[field_name] = field_info.default
            elif field_info.default_factory is not MISSING:
                kwargs[field_name] = field_info.default_factory()
            else:
                raise ConfigError(
                    f"Required config field '{field_name}' not provided"
                )

        return config_class(**kwargs)

    def _check_type(self, value: Any, expected_type: Type) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)
        if origin is types.UnionType or origin is Union:
            if value is None:
                return type(None) in get_args(expected_type)
            return any(
                self._check_type(value, arg)
                for arg in get_args(expected_type)
                if arg is not type(None)
            )

        if origin:
            return isinstance(value, origin)

        try:
            return isinstance(value, expected_type)
        except TypeError:
            # For complex types, skip validation
            return True

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()


def load_config(
    paths: Optional[list[str]] = None,
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> FaultlineConfig:
    """Load and validate a FaultlineConfig in one step."""
    return ConfigLoader.load(paths=paths, env_file=env_file, overrides=overrides).get_config()
