"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables, e.g. ``PERSISTENCE_BACKEND=sqlite`` (always win)
  2. ``.env`` file in the project root (local development)

Field ``training_profile`` maps to env var ``TRAINING_PROFILE`` and so on;
pydantic-settings uppercases and matches automatically.  Defaults apply when
neither source sets a value.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """TuneQueue application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Dataset ===
    catalog_path: str = "data/tracks.json"
    sessions_path: str = "data/sessions.json"

    # === Persistence ===
    # memory = lost on restart; file = one file per key; sqlite = kv table.
    persistence_backend: Literal["memory", "file", "sqlite"] = "sqlite"
    persistence_dir: str = "data/state"
    persistence_db_path: str = "data/tunequeue_state.db"

    # === Training ===
    # "mobile" trades accuracy for a responsive event loop on constrained hosts.
    training_profile: Literal["standard", "mobile"] = "standard"
    random_seed: int | None = None
    train_on_startup: bool = True

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
