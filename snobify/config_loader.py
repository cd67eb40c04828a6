"""
Configuration Loader - Manages YAML configuration and environment variables
"""
import os
from typing import Any, Mapping, Optional

import yaml

from snobify.analysis.config import (
    LibraryConfig,
    PlaylistRatingsConfig,
    PlaylistScoreConfig,
    RareGateConfig,
    StatsConfig,
    TasteProfileConfig,
)
from snobify.exceptions import ConfigError

DEFAULT_DATA_PATH = "data"
DEFAULT_ORIGIN_TABLE = os.path.join("cache", "artist_origin.json")


class Config:
    """Configuration manager for Snobify"""

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: YAML file to load. None means built-in defaults only.

        Raises:
            FileNotFoundError: config_path does not exist
            ConfigError: the document is not valid YAML or not a mapping of sections
        """
        self.config_path = config_path
        self.config = self._load_config()
        self._validate_config()

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if self.config_path is None:
            return {}
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Could not parse {self.config_path}: {exc}") from exc

    def _validate_config(self):
        """Every top-level entry must be a section (mapping)"""
        if not isinstance(self.config, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping of sections")
        for section, body in self.config.items():
            if body is not None and not isinstance(body, dict):
                raise ConfigError(f"Configuration section '{section}' must be a mapping")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        return self.section(section).get(key, default)

    def section(self, name: str) -> Mapping[str, Any]:
        """A whole section as a dict (empty when absent)"""
        return self.config.get(name) or {}

    @property
    def data_path(self) -> str:
        """Get playlist export location (with environment variable override)"""
        return os.getenv('SNOBIFY_DATA_PATH') or self.get('data', 'path', DEFAULT_DATA_PATH)

    @property
    def origin_table_path(self) -> str:
        """Get artist origin table path (with environment variable override)"""
        return os.getenv('SNOBIFY_ORIGIN_TABLE') or self.get('data', 'origin_table', DEFAULT_ORIGIN_TABLE)

    @property
    def log_level(self) -> str:
        """Get console log level"""
        return str(self.get('logging', 'level', 'INFO')).upper()

    @property
    def log_file(self) -> Optional[str]:
        """Get optional log file path"""
        return self.get('logging', 'file')

    def stats_config(self) -> StatsConfig:
        return StatsConfig.from_dict(self.section('stats'))

    def library_config(self) -> LibraryConfig:
        return LibraryConfig.from_dict(self.section('library'))

    def playlist_ratings_config(self) -> PlaylistRatingsConfig:
        return PlaylistRatingsConfig.from_dict(self.section('playlist_ratings'))

    def playlist_score_config(self) -> PlaylistScoreConfig:
        return PlaylistScoreConfig.from_dict(self.section('playlist_score'))

    def rare_gate_config(self) -> RareGateConfig:
        return RareGateConfig.from_dict(self.section('rare_gate'))

    def taste_profile_config(self) -> TasteProfileConfig:
        return TasteProfileConfig.from_dict(self.section('taste_profile'))
