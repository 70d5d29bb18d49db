"""Scenario configuration.

The scenario never reads cluster or provider settings from global state. A
ScenarioConfig is built once at startup and passed explicitly to every step.

Precedence (highest to lowest):
1. CLI flags (overrides)
2. Environment variables (LOCALSSD_E2E_*)
3. Config file (~/.localssd-e2e/config.yaml)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .labels import DEFAULT_IMAGE, DEFAULT_POOL_NAME
from .shared.paths import CONFIG_FILE

DEFAULT_PROVIDER = "gke"
DEFAULT_NAMESPACE = "localssd-e2e"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_TIMEOUT = 300.0

ENV_PREFIX = "LOCALSSD_E2E_"

# Keys that can be set from the config file, environment or CLI
CONFIG_KEYS = (
    "cluster",
    "provider",
    "zone",
    "project",
    "namespace",
    "pool_name",
    "local_ssd_count",
    "image",
    "kubeconfig",
    "poll_interval",
    "timeout",
    "cleanup_workload",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ScenarioConfig:
    """Configuration for one scenario run."""

    cluster: str = ""
    provider: str = DEFAULT_PROVIDER
    zone: str | None = None
    project: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    pool_name: str = DEFAULT_POOL_NAME
    local_ssd_count: int = 1
    image: str = DEFAULT_IMAGE
    kubeconfig: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    cleanup_workload: bool = False

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict, repr=False)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def validate(self) -> None:
        """Check the values a run cannot start without.

        Raises:
            ConfigError: If a value is missing or out of range.
        """
        if not self.cluster:
            raise ConfigError(
                "No cluster configured. Use --cluster, "
                f"{ENV_PREFIX}CLUSTER or 'cluster' in the config file"
            )
        if not self.pool_name:
            raise ConfigError("Node pool name must not be empty")
        if self.local_ssd_count < 1:
            raise ConfigError(f"local_ssd_count must be >= 1, got {self.local_ssd_count}")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def as_dict(self) -> dict[str, Any]:
        """Config values keyed by name, without source tracking."""
        return {key: getattr(self, key) for key in CONFIG_KEYS}


def get_config_path() -> Path:
    """Get the default config file path.

    Returns:
        Path to ~/.localssd-e2e/config.yaml
    """
    return CONFIG_FILE


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw value to the type of the config field."""
    field_type = {f.name: f.type for f in fields(ScenarioConfig)}[key]
    if value is None:
        return None
    if field_type == "int":
        return int(value)
    if field_type == "float":
        return float(value)
    if field_type == "bool":
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_VALUES
        return bool(value)
    return str(value)


def _load_file(path: Path) -> dict[str, Any]:
    """Read the YAML config file.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ScenarioConfig:
    """Load scenario configuration.

    Args:
        path: Config file to read instead of the default location.
            An explicit path that does not exist is an error.
        overrides: Values from CLI flags. None values are ignored.

    Returns:
        ScenarioConfig with values and sources

    Raises:
        ConfigError: If the config file is unreadable or a value has the wrong type.
    """
    config = ScenarioConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    config_path = Path(path) if path else get_config_path()
    if path and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    if config_path.exists():
        file_config = _load_file(config_path)
        for key in CONFIG_KEYS:
            if key in file_config:
                try:
                    setattr(config, key, _coerce(key, file_config[key]))
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"Invalid value for '{key}' in {config_path}: {e}") from e
                sources[key] = "config file"

    for key in CONFIG_KEYS:
        env_value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if not env_value:
            continue
        try:
            setattr(config, key, _coerce(key, env_value))
        except ValueError:
            continue  # Ignore malformed numbers, keep the previous value
        sources[key] = "environment"

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in CONFIG_KEYS:
            raise ConfigError(f"Unknown config key: {key}")
        setattr(config, key, _coerce(key, value))
        sources[key] = "cli"

    config._sources = sources
    return config
