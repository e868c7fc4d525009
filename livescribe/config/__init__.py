"""Simple YAML configuration loader for LiveScribe."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 5080,
        "temp_dir": None,
    },
    "engine": {
        "backend": "whisper",
        "model": "base",
        "device": "cpu",
        "compute_type": "int8",
        "language": None,
    },
    "google_cloud": {
        "credentials_path": None,
        "language": "en-US",
        "use_enhanced_model": True,
        "enable_automatic_punctuation": True,
    },
    "transcoder": {
        "ffmpeg_path": "ffmpeg",
        "sample_rate": 16000,
    },
    "metrics": {
        "log_path": None,
    },
    "client": {
        "base_url": "http://127.0.0.1:5080",
        "timeout_seconds": 300,
        "upload_workers": 4,
    },
    "audio": {
        "sample_rate": 16000,
        "channels": 1,
        "frames_per_buffer": 1024,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/livescribe.log",
        "console_output": True,
    },
}

# Dot paths resolved relative to the config file directory.
PATH_KEYS = (
    "google_cloud.credentials_path",
    "metrics.log_path",
    "logging.file_path",
    "server.temp_dir",
)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class LiveScribeConfig:
    """LiveScribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, the built-in
                        defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULTS)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)

            if not loaded:
                raise ValueError("Configuration file is empty")
            if not isinstance(loaded, dict):
                raise ValueError("Configuration root must be a mapping")

            config = _merge(DEFAULTS, loaded)
            self._resolve_paths(config)

            logger.info("Configuration loaded successfully")
            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for key_path in PATH_KEYS:
            section, key = key_path.split('.')
            value = config.get(section, {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'engine.model').

        Args:
            key_path: Dot-separated key path (e.g., 'client.base_url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return default if value is None else value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'server.port')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - raises if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in livescribe.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_temp_directory(self) -> Optional[str]:
        """Get the directory for upload and conversion temp files (None = system default)."""
        temp_dir = self.get('server.temp_dir')
        if not temp_dir:
            return None
        path = Path(temp_dir)
        path.mkdir(parents=True, exist_ok=True)
        return str(path.absolute())
