"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  - static defaults checked into the repo
  2. .env file           - local developer overrides (not committed)
  3. Environment vars    - set at deploy time

``load_config()`` reads the YAML file first, then deep-merges the
environment-based values on top.  The ``training`` and ``queue`` sections
are turned into validated models by :func:`build_training_config` and
:func:`build_queue_config`.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tunequeue.config.settings import Settings
from tunequeue.models.queue import QueueConfig
from tunequeue.models.training import TrainingConfig, TrainingProfile
from tunequeue.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read otherwise.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file exists but cannot be parsed.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(message=f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(message=f"{config_path} must contain a mapping")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "dataset": {
            "catalog_path": settings.catalog_path,
            "sessions_path": settings.sessions_path,
        },
        "persistence": {
            "backend": settings.persistence_backend,
            "dir": settings.persistence_dir,
            "db_path": settings.persistence_db_path,
        },
        "training": {
            "profile": settings.training_profile,
            "seed": settings.random_seed,
            "train_on_startup": settings.train_on_startup,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_training_config(config: dict[str, Any]) -> TrainingConfig:
    """Resolve the ``training`` section into a ``TrainingConfig``.

    Profile defaults come first; any hyper-parameter present in the YAML
    section overrides them.
    """
    section = dict(config.get("training") or {})
    profile = section.pop("profile", TrainingProfile.STANDARD.value)
    for key in ("seed", "train_on_startup"):
        section.pop(key, None)
    try:
        return TrainingConfig.for_profile(TrainingProfile(profile), **section)
    except (ValueError, ValidationError) as exc:
        raise ConfigurationError(message=f"Invalid training configuration: {exc}") from exc


def build_queue_config(config: dict[str, Any]) -> QueueConfig:
    """Resolve the ``queue`` section into a ``QueueConfig``."""
    try:
        return QueueConfig.model_validate(config.get("queue") or {})
    except ValidationError as exc:
        raise ConfigurationError(message=f"Invalid queue configuration: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
