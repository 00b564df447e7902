"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (TAR2ZIP_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tar2zip.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


def _flatten_keys(data: dict[str, Any], prefix: str = "") -> set[str]:
    keys: set[str] = set()
    for key, value in data.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            keys.update(_flatten_keys(value, key_path))
        else:
            keys.add(key_path)
    return keys


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'convert': {'verbose': True}},
            user_config_path=Path('~/.config/tar2zip/config.yaml'),
        )

        verbose, source = resolver.resolve('convert.verbose')
        # verbose = True, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/tar2zip/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/tar2zip/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Backwards compatible alias: verbosity -> logging.level

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        key = "logging.level"
        found = self._try_resolve(key)
        if found is None:
            found = self._try_resolve("verbosity")
        if found is None:
            return DEFAULT_LOGGING_LEVEL

        value, _src = found
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a bool key; strings from env/YAML like 'true'/'0' are accepted."""
        found = self._try_resolve(key)
        if found is None:
            return default
        value, _src = found
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            norm = value.strip().lower()
            if norm in _TRUE_STRINGS:
                return True
            if norm in _FALSE_STRINGS:
                return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_str(self, key: str, default: str) -> str:
        found = self._try_resolve(key)
        if found is None:
            return default
        value, _src = found
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        if value.strip() == "":
            raise ConfigError(f"Config key '{key}' must not be empty")
        return value

    def resolve_optional_int(
        self, key: str, *, minimum: int | None = None, maximum: int | None = None
    ) -> int | None:
        """Resolve an int key that may be absent (None)."""
        found = self._try_resolve(key)
        if found is None:
            return None
        value, _src = found
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int")
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        if not isinstance(value, int):
            raise ConfigError(f"Config key '{key}' must be an int")
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            raise ConfigError(
                f"Config key '{key}' must be between {minimum} and {maximum}, got {value}"
            )
        return value

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key known to any source.

        Returns:
            Dict of key -> ConfigSource
        """
        all_keys: set[str] = set()
        all_keys.update(_flatten_keys(self.defaults))
        all_keys.update(_flatten_keys(self.cli_args))
        all_keys.update(_flatten_keys(self._get_user_config()))
        all_keys.update(_flatten_keys(self._get_system_config()))

        result: dict[str, ConfigSource] = {}
        for key in sorted(all_keys):
            try:
                value, source = self.resolve(key)
            except ConfigError:
                continue
            result[key] = ConfigSource(value=value, source=source)
        return result

    def _try_resolve(self, key: str) -> tuple[Any, str] | None:
        try:
            return self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return None
            raise

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: TAR2ZIP_KEY_NAME
        Example: TAR2ZIP_CONVERT_VERBOSE, TAR2ZIP_LOGGING_LEVEL
        """
        env_key = f"TAR2ZIP_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
            "convert": {
                "verbose": False,
                "output_extension": "zip",
                # None: zlib default level
                "compresslevel": None,
            },
        }
