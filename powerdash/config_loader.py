"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .config_models import SystemConfig


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load and validate system configuration.

    Args:
        config_path: Path to the configuration file. Defaults to config/config.yml

    Returns:
        Validated SystemConfig instance

    Raises:
        ConfigurationError: If configuration loading or validation fails
    """
    if config_path is None:
        config_path = Path("config/config.yml")

    config_data: dict = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    # Environment variables win over the file for deployment-specific settings
    env_overrides = _load_env_overrides()
    if env_overrides:
        _deep_update(config_data, env_overrides)

    try:
        return SystemConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def _load_env_overrides() -> dict:
    """Load configuration overrides from environment variables."""
    overrides: dict = {}

    env_mappings = {
        "POWERDASH_LOG_LEVEL": ("logging", "level"),
        "POWERDASH_LOG_DIR": ("paths", "log_dir"),
        "POWERDASH_DATA_FILE": ("ingestion", "data_file"),
        "POWERDASH_MODE": ("ingestion", "mode"),
        "POWERDASH_STREAM_BACKEND": ("stream", "backend"),
        "POWERDASH_KAFKA_BROKERS": ("stream", "bootstrap_servers"),
        "POWERDASH_KAFKA_TOPIC": ("stream", "topic"),
        "POWERDASH_HOST": ("dashboard", "host"),
        "POWERDASH_PORT": ("dashboard", "port"),
    }

    for env_var, config_path in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            current = overrides
            for key in config_path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]
            current[config_path[-1]] = value

    return overrides


def _deep_update(target: dict, updates: dict) -> None:
    """Merge nested override dictionaries into target in place."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value


def create_example_config(output_path: Path = Path("config/config.yml.example")) -> None:
    """Create an example configuration file."""
    example_config = {
        "paths": {
            "log_dir": "logs"
        },
        "logging": {
            "level": "INFO"
        },
        "dashboard": {
            "host": "127.0.0.1",
            "port": 5000,
            "update_interval_ms": 1000
        },
        "ingestion": {
            "mode": "batch",
            "history_limit": 200,
            "rotation_interval_seconds": 3.0
        },
        "stream": {
            "backend": "memory",
            "bootstrap_servers": "localhost:9092",
            "topic": "dashboard-data",
            "group_id": "dashboard-group"
        },
        "thresholds": {
            "cosPhi": {"excellent": 0.95, "good": 0.90, "warning": 0.85},
            "amperage": {"normal": 16, "warning": 20},
            "frequency": {
                "stable_min": 49.9,
                "stable_max": 50.1,
                "acceptable_min": 49.5,
                "acceptable_max": 50.5
            }
        }
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
