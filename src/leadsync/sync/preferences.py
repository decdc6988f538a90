"""Persisted sync preferences (interval and auto-sync switch).

Stored as a small YAML key-value file next to the database so they survive
restarts independently of the record store.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from .models import SyncInterval


logger = logging.getLogger(__name__)


SYNC_INTERVAL_KEY = "sync_interval"
AUTO_SYNC_ENABLED_KEY = "auto_sync_enabled"
DEFAULT_SYNC_INTERVAL = SyncInterval.ONE_HOUR


class SyncPreferences:
    """Key-value preferences backed by a YAML file."""

    FILE_NAME = "sync_preferences.yaml"

    def __init__(self, config_dir: Path):
        self.config_file = Path(config_dir) / self.FILE_NAME
        self.sync_interval: SyncInterval = DEFAULT_SYNC_INTERVAL
        self.auto_sync_enabled: bool = False
        self.load()

    def load(self):
        """Load preferences; a missing or unreadable file keeps the defaults."""
        if not self.config_file.exists():
            logger.debug("No sync preferences file found, using defaults")
            return

        try:
            with open(self.config_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load sync preferences: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed sync preferences in {self.config_file}")
            return

        raw_interval = data.get(SYNC_INTERVAL_KEY)
        if raw_interval is not None:
            try:
                self.sync_interval = SyncInterval(str(raw_interval))
            except ValueError:
                logger.warning(f"Unknown sync interval {raw_interval!r}, using {DEFAULT_SYNC_INTERVAL.value}")

        self.auto_sync_enabled = bool(data.get(AUTO_SYNC_ENABLED_KEY, False))

    def to_dict(self) -> Dict[str, Any]:
        return {
            SYNC_INTERVAL_KEY: self.sync_interval.value,
            AUTO_SYNC_ENABLED_KEY: self.auto_sync_enabled,
        }

    def save(self):
        """Write preferences atomically."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.config_file.with_suffix(".tmp")
        with open(temp_file, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=True)
        temp_file.replace(self.config_file)
        logger.debug(f"Saved sync preferences to {self.config_file}")
