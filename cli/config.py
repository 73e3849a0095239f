"""Configuration management for the LanShare CLI."""

import json
import os
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_HUB_PORT, PEER_CHANNEL_PATH
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.lanshare' / 'config.json'


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "hub_host": os.environ.get("LANSHARE_HUB_HOST", "localhost"),
        "hub_port": int(os.environ.get("LANSHARE_HUB_PORT", str(DEFAULT_HUB_PORT))),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.lanshare/config.json)
        """
        self.config_path = Path(config_path)
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A corrupt file is kept as ``config.json.bak`` and defaults are used.
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Unreadable config {self.config_path} ({e}), moved to {backup_path}")
            self.config_path.replace(backup_path)
            return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        config.update(data)
        return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write config {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file."""
        self._write(self.data)

    def get_api_key(self) -> Optional[str]:
        return self.data.get('api_key')

    def set_api_key(self, key: str) -> None:
        """
        Set API key and save to file.

        Args:
            key: API key string (format: "lsk_<uuid>")
        """
        self.data['api_key'] = key
        self.save()

    def get_base_url(self) -> str:
        """
        Get hub base URL (e.g., "http://localhost:8000").
        """
        host = self.data.get('hub_host', 'localhost')
        port = self.data.get('hub_port', DEFAULT_HUB_PORT)
        return f"http://{host}:{port}"

    def get_channel_url(self) -> str:
        """
        Get the peer channel WebSocket URL (e.g., "ws://localhost:8000/peers/channel").
        """
        return self.get_base_url().replace("http://", "ws://", 1) + PEER_CHANNEL_PATH

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }
