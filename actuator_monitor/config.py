"""
Actuator Monitor - Configuration.

============================================================
CONFIGURATION SOURCES
============================================================

Configuration can be loaded from:
- Default values
- Environment variables (a .env file is honoured by the CLI)
- YAML config file

Environment variables:
- ACTUATOR_BASE_URL
- ACTUATOR_TIMEOUT
- ACTUATOR_POLL_INTERVAL
- ACTUATOR_FETCH_HEALTH
- ACTUATOR_FETCH_INFO
- LOG_LEVEL
- LOG_FORMAT

============================================================
"""

import logging
import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml

from actuator_monitor.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def _coerce_setting(name: str, value: Any, kind: type) -> Any:
    """
    Convert a loaded value to the declared type of a setting.

    Raises:
        ConfigurationError: If the value cannot represent that type
    """
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in TRUE_VALUES + FALSE_VALUES:
            return value.strip().lower() in TRUE_VALUES
    elif not isinstance(value, (bool, dict, list)):
        if kind is str:
            return str(value)
        try:
            number = kind(value)
            exact = float(value)
        except (TypeError, ValueError, OverflowError):
            pass
        else:
            # Fractional values are not accepted for int settings
            if math.isfinite(exact) and number == exact:
                return number

    raise ConfigurationError(
        message=f"Setting '{name}' expects {kind.__name__}, got {value!r}",
        config_key=name,
    )


@dataclass
class ActuatorConfig:
    """Settings for polling one application's actuator endpoints."""
    base_url: str = "http://localhost:8080"
    timeout_seconds: float = 10.0
    poll_interval_seconds: int = 10

    # Collaborator resources
    fetch_health: bool = True
    fetch_info: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    user_agent: str = "ActuatorMonitor/1.0"

    @classmethod
    def from_env(cls) -> "ActuatorConfig":
        """Load configuration from environment variables."""
        defaults = cls()
        try:
            return cls(
                base_url=os.getenv("ACTUATOR_BASE_URL", defaults.base_url),
                timeout_seconds=float(os.getenv("ACTUATOR_TIMEOUT", str(defaults.timeout_seconds))),
                poll_interval_seconds=int(os.getenv("ACTUATOR_POLL_INTERVAL", str(defaults.poll_interval_seconds))),
                fetch_health=_env_bool("ACTUATOR_FETCH_HEALTH", defaults.fetch_health),
                fetch_info=_env_bool("ACTUATOR_FETCH_INFO", defaults.fetch_info),
                log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
                log_format=os.getenv("LOG_FORMAT", defaults.log_format).lower(),
            )
        except ValueError as e:
            raise ConfigurationError(
                message=f"Invalid numeric setting in environment: {e}",
                original_error=e,
            )

    @classmethod
    def from_yaml(cls, path: Path, base: Optional["ActuatorConfig"] = None) -> "ActuatorConfig":
        """
        Load configuration from a YAML file.

        Keys mirror the dataclass fields; missing keys keep the values of
        base, or the defaults when no base is given.

        Raises:
            ConfigurationError: If the file cannot be read or parsed, or a
                value does not fit its setting's type
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                message=f"Failed to load YAML config from {path}",
                config_key=str(path),
                original_error=e,
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"YAML config {path} must be a mapping",
                config_key=str(path),
            )

        config = base or cls()
        config.update(data)
        return config

    def update(self, values: Dict[str, Any]) -> None:
        """
        Override fields from a mapping, ignoring None values.

        Raises:
            ConfigurationError: If a value does not fit its field type
        """
        settings = {f.name: f.type for f in fields(self)}
        for name, value in values.items():
            if name not in settings:
                logger.warning(f"[config] Ignoring unknown setting '{name}'")
                continue
            if value is not None:
                setattr(self, name, _coerce_setting(name, value, settings[name]))

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        parsed = urlparse(self.base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"base_url must be an absolute http(s) URL, got '{self.base_url}'")

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        if self.poll_interval_seconds < 1:
            errors.append("poll_interval_seconds must be at least 1")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "fetch_health": self.fetch_health,
            "fetch_info": self.fetch_info,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "user_agent": self.user_agent,
        }


# =============================================================
# GLOBAL CONFIG SINGLETON
# =============================================================


_default_config: Optional[ActuatorConfig] = None


def get_config() -> ActuatorConfig:
    """Get the global actuator configuration."""
    global _default_config
    if _default_config is None:
        _default_config = ActuatorConfig.from_env()
    return _default_config


def set_config(config: Optional[ActuatorConfig]) -> None:
    """Set (or with None, reset) the global actuator configuration."""
    global _default_config
    _default_config = config
