"""Engine configuration.

Settings come from, in increasing priority: defaults, ``config.yaml`` in the
data directory, and ``LEADSYNC_*`` environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


DEFAULT_DATA_DIR = "~/.leadsync"
CONFIG_FILE = "config.yaml"


class EngineSettings(BaseSettings):
    """Settings for the sync engine and its stores."""

    model_config = SettingsConfigDict(env_prefix="LEADSYNC_", extra="ignore")

    # Storage
    data_dir: str = DEFAULT_DATA_DIR
    database_name: str = "leadsync.db"

    # Remote store; without a base URL the engine runs against an in-memory store
    remote_base_url: Optional[str] = None
    remote_timeout_seconds: float = 30.0
    page_size: int = 500

    # Identity supplied by the host application
    principal_id: Optional[str] = None
    api_token: Optional[str] = None

    # Sync behaviour
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    grace_window_seconds: int = 300
    batch_size: int = 200
    upload_concurrency: int = 8
    include_appointments: bool = True

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v):
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator("retry_delay_seconds", "remote_timeout_seconds")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Durations must not be negative")
        return v

    @field_validator("batch_size", "upload_concurrency", "page_size", "grace_window_seconds")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @property
    def data_path(self) -> Path:
        return Path(os.path.expanduser(self.data_dir))

    @property
    def database_path(self) -> Path:
        return self.data_path / self.database_name


def get_config_dir(data_dir: Optional[str] = None) -> Path:
    """Get the configuration directory path, creating it if needed."""
    path = Path(os.path.expanduser(data_dir or os.environ.get("LEADSYNC_DATA_DIR", DEFAULT_DATA_DIR)))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring malformed config in {config_path}")
        return {}
    return data


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> EngineSettings:
    """Load settings from YAML, environment and explicit overrides.

    Environment variables win over the YAML file; ``overrides`` win over both.
    """
    if config_path is None:
        config_path = get_config_dir(overrides.get("data_dir")) / CONFIG_FILE

    file_values = _load_yaml(Path(config_path))
    env_settings = EngineSettings()
    env_values = {
        name: getattr(env_settings, name)
        for name in env_settings.model_fields_set
    }

    values = {**file_values, **env_values}
    values.update({k: v for k, v in overrides.items() if v is not None})
    settings = EngineSettings(**values)
    logger.debug(f"Loaded settings (data dir {settings.data_path})")
    return settings
