"""Configuration module: exports Settings, load_config, and a module-level singleton."""

from tunequeue.config.loader import build_queue_config, build_training_config, load_config
from tunequeue.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "build_queue_config", "build_training_config", "load_config", "settings"]
