"""Runtime configuration for the scanner.

Settings start from built-in defaults, are optionally overlaid by a JSON file,
and finally by ``NPM_MALSCAN_*`` environment variables. A JSON file looks like::

    {
        "apiUrl": "https://api.osv.dev/v1/querybatch",
        "batchSize": 1000,
        "requestTimeout": 30,
        "maxWorkers": 4,
        "synthesisTimeout": 300
    }

Validation is done here by hand; there is no schema file for settings.
"""

from __future__ import annotations

import json
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError

OSV_BATCH_URL = "https://api.osv.dev/v1/querybatch"
MAX_BATCH_SIZE = 1000

CONFIG_PATH_ENV_VAR = "NPM_MALSCAN_CONFIG"

# JSON key -> (Settings field, environment variable, value type)
_FIELDS: dict[str, tuple[str, str, type]] = {
    "apiUrl": ("api_url", "NPM_MALSCAN_OSV_URL", str),
    "batchSize": ("batch_size", "NPM_MALSCAN_BATCH_SIZE", int),
    "requestTimeout": ("request_timeout", "NPM_MALSCAN_REQUEST_TIMEOUT", float),
    "maxWorkers": ("max_workers", "NPM_MALSCAN_MAX_WORKERS", int),
    "synthesisTimeout": ("synthesis_timeout", "NPM_MALSCAN_SYNTHESIS_TIMEOUT", float),
}


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    api_url: str = OSV_BATCH_URL
    batch_size: int = MAX_BATCH_SIZE
    request_timeout: float = 30.0
    max_workers: int = 4
    synthesis_timeout: float = 300.0

    def __post_init__(self) -> None:
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigError(f"'apiUrl' must be an http(s) URL, got {self.api_url!r}")
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigError(f"'batchSize' must be between 1 and {MAX_BATCH_SIZE}")
        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            raise ConfigError("'requestTimeout' must be positive")
        if self.max_workers < 1:
            raise ConfigError("'maxWorkers' must be at least 1")
        if not math.isfinite(self.synthesis_timeout) or self.synthesis_timeout <= 0:
            raise ConfigError("'synthesisTimeout' must be positive")


def _check_type(key: str, value: Any, kind: type) -> Any:
    """Validate a JSON value against the field type; JSON ints are valid floats."""
    if isinstance(value, bool):
        raise ConfigError(f"'{key}' has invalid value {value!r}")
    if kind is float and isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, kind):
        raise ConfigError(f"'{key}' must be of type {kind.__name__}, got {value!r}")
    return value


def _parse_env(env_var: str, raw: str, kind: type) -> Any:
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"'{env_var}' has invalid value {raw!r}") from exc


def _overrides_from_mapping(data: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(data) - set(_FIELDS))
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        field_name, _, kind = _FIELDS[key]
        overrides[field_name] = _check_type(key, value, kind)
    return overrides


def _overrides_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for field_name, env_var, kind in _FIELDS.values():
        raw = environ.get(env_var, "").strip()
        if raw:
            overrides[field_name] = _parse_env(env_var, raw, kind)
    return overrides


def _resolve_config_path(path: Path | str | None, environ: Mapping[str, str]) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_MALSCAN_CONFIG environment variable
    3. None (defaults only)
    """
    if path is not None:
        return Path(path)

    env_path = environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def _read_config_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return _overrides_from_mapping(data)


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Optional path to a JSON config file. If not provided, uses the
            NPM_MALSCAN_CONFIG env var, or built-in defaults when that is unset.
        environ: Environment mapping to read overrides from; defaults to
            ``os.environ``.

    Returns:
        A validated Settings object.

    Raises:
        ConfigError: If the file cannot be read or any value is invalid.
    """
    environ = os.environ if environ is None else environ
    settings = Settings()

    config_path = _resolve_config_path(path, environ)
    if config_path is not None:
        settings = replace(settings, **_read_config_file(config_path))

    env_overrides = _overrides_from_env(environ)
    if env_overrides:
        settings = replace(settings, **env_overrides)

    return settings
