"""Configuration loading from env vars and an optional YAML file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import yaml

from log2avro.errors import ConfigResolutionError

logger = logging.getLogger(__name__)

CODECS = ("null", "deflate")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
RFC3339 = "rfc3339"

# Config field -> environment variable
ENV_VARS = {
    "time_key": "ENV_TIME_KEY",
    "level_key": "ENV_LEVEL_KEY",
    "body_key": "ENV_BODY_KEY",
    "time_format": "ENV_TIME_FORMAT",
    "codec": "ENV_CODEC",
    "log_level": "LOG2AVRO_LOG_LEVEL",
}


@dataclass(frozen=True)
class Config:
    """Immutable converter configuration, resolved once at startup."""

    time_key: str = "time"
    level_key: str = "level"
    body_key: str = "body"
    time_format: str = RFC3339
    codec: str = "null"
    log_level: str = "INFO"


def load_yaml_config(path: str | None) -> dict:
    """Load config overrides from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigResolutionError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigResolutionError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigResolutionError(
            f"config file {path} must contain a mapping, got {type(data).__name__}"
        )
    logger.info("Loaded YAML config from %s", path)
    return data


def _resolve(name: str, yaml_data: dict, environ) -> str:
    """Environment wins over YAML, YAML wins over the built-in default."""
    value = environ.get(ENV_VARS[name])
    if value is None:
        value = yaml_data.get(name, getattr(Config, name))
    if not isinstance(value, str):
        raise ConfigResolutionError(
            f"'{name}' must be a string, got {type(value).__name__}"
        )
    if not value:
        raise ConfigResolutionError(f"no value got for '{name}'")
    return value


def load_config(yaml_data: dict | None = None, environ=None) -> Config:
    """Build Config from built-in defaults, YAML data and environment variables.

    Raises:
        ConfigResolutionError: If a value is empty, has the wrong type, or
            is not one of the supported choices.
    """
    yaml_data = yaml_data or {}
    environ = os.environ if environ is None else environ

    unknown = sorted(set(yaml_data) - set(ENV_VARS))
    if unknown:
        raise ConfigResolutionError(f"unknown config keys: {', '.join(unknown)}")

    values = {name: _resolve(name, yaml_data, environ) for name in ENV_VARS}
    values["codec"] = values["codec"].lower()
    values["log_level"] = values["log_level"].upper()

    if values["codec"] not in CODECS:
        raise ConfigResolutionError(
            f"unsupported codec '{values['codec']}', expected one of {CODECS}"
        )
    if values["log_level"] not in LOG_LEVELS:
        raise ConfigResolutionError(
            f"unknown log level '{values['log_level']}', expected one of {LOG_LEVELS}"
        )
    return Config(**values)
