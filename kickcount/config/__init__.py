"""Simple YAML configuration loader for KickCount."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
import logging

from ..models.tally import DEFAULT_KEYWORDS

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'sample_rate': 16000,
        'chunk_size': 1024,
        'channels': 1,
    },
    'google_cloud': {
        'credentials_path': None,
    },
    'recognition': {
        'language_code': 'en-AU',
        'interim_results': False,
        'single_utterance': False,
        'model': None,
        'keywords': [{'word': word, 'label': label} for word, label in DEFAULT_KEYWORDS],
    },
    'permissions': {
        'microphone': 'ask',
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/kickcount.log',
        'console_output': True,
    },
    'ui': {
        'start_text': 'Start talking!',
        'api_error_text': 'Sorry, there was a problem with the speech service.',
        'refresh_per_second': 10,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class KickCountConfig:
    """KickCount configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
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
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        config = _deep_merge(DEFAULT_CONFIG, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        creds_path = config['google_cloud'].get('credentials_path')
        if creds_path and not os.path.isabs(creds_path):
            config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'recognition.language_code').

        Args:
            key_path: Dot-separated key path
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

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> Optional[str]:
        """Get the service account file, or None to use Application Default Credentials."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            return None

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_keywords(self) -> List[Tuple[str, str]]:
        """Ordered (keyword, label) pairs to tally and to send as phrase hints."""
        entries = self.get('recognition.keywords') or []
        keywords = []
        for entry in entries:
            if isinstance(entry, str):
                keywords.append((entry.lower(), entry.capitalize()))
            else:
                keywords.append((str(entry['word']).lower(), str(entry.get('label', entry['word']))))
        if not keywords:
            raise ValueError("recognition.keywords must list at least one keyword")
        return keywords
