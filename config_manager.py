"""
Configuration management for the bento feed service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


@dataclass
class RankingConfig:
    """Ranking engine weights and limits."""
    half_life_days: float
    recency_weight: float
    popularity_weight: float
    featured_boost: float
    personalization_weight: float
    max_position_shift: float


@dataclass
class LayoutConfig:
    """Rank banding used when an editor has not declared a size."""
    featured_band: int
    large_band: int
    medium_band: int
    size_boost_enabled: bool


@dataclass
class ScorerConfig:
    """External recommendation scorer settings."""
    base_url: str
    timeout_seconds: float
    enabled: bool


@dataclass
class FeedConfig:
    """Feed assembly settings."""
    cache_ttl_seconds: int
    cache_max_entries: int


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str
    user_data_dir: str
    catalog_file: str
    overrides_file: str


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "bento_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22582,
                "debug": False
            },
            "ranking": {
                "half_life_days": 7.0,
                "recency_weight": 0.6,
                "popularity_weight": 0.4,
                "featured_boost": 1.5,
                "personalization_weight": 1.0,
                "max_position_shift": 5.0
            },
            "layout": {
                "featured_band": 1,
                "large_band": 3,
                "medium_band": 7,
                "size_boost_enabled": True
            },
            "scorer": {
                "base_url": "",
                "timeout_seconds": 5.0,
                "enabled": True
            },
            "feed": {
                "cache_ttl_seconds": 300,
                "cache_max_entries": 256
            },
            "paths": {
                "data_dir": "data",
                "user_data_dir": "user_data",
                "catalog_file": "data/catalog.json",
                "overrides_file": "data/bento_overrides.json"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config:
                if isinstance(values, dict):
                    self._config[section].update(values)
                else:
                    self._config[section] = values
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        # Ranking settings
        if os.getenv("RANKING_HALF_LIFE_DAYS"):
            self._config["ranking"]["half_life_days"] = float(os.getenv("RANKING_HALF_LIFE_DAYS"))

        if os.getenv("RANKING_FEATURED_BOOST"):
            self._config["ranking"]["featured_boost"] = float(os.getenv("RANKING_FEATURED_BOOST"))

        if os.getenv("RANKING_MAX_POSITION_SHIFT"):
            self._config["ranking"]["max_position_shift"] = float(os.getenv("RANKING_MAX_POSITION_SHIFT"))

        # Layout settings
        if os.getenv("LAYOUT_SIZE_BOOST"):
            self._config["layout"]["size_boost_enabled"] = os.getenv("LAYOUT_SIZE_BOOST").lower() == "true"

        # Scorer settings
        if os.getenv("SCORER_BASE_URL"):
            self._config["scorer"]["base_url"] = os.getenv("SCORER_BASE_URL")

        if os.getenv("SCORER_TIMEOUT"):
            self._config["scorer"]["timeout_seconds"] = float(os.getenv("SCORER_TIMEOUT"))

        if os.getenv("SCORER_ENABLED"):
            self._config["scorer"]["enabled"] = os.getenv("SCORER_ENABLED").lower() == "true"

        # Feed settings
        if os.getenv("FEED_CACHE_TTL"):
            self._config["feed"]["cache_ttl_seconds"] = int(os.getenv("FEED_CACHE_TTL"))

        if os.getenv("FEED_CACHE_MAX_ENTRIES"):
            self._config["feed"]["cache_max_entries"] = int(os.getenv("FEED_CACHE_MAX_ENTRIES"))

        # Paths
        if os.getenv("BENTO_DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("BENTO_DATA_DIR")

        if os.getenv("BENTO_CATALOG_FILE"):
            self._config["paths"]["catalog_file"] = os.getenv("BENTO_CATALOG_FILE")

        if os.getenv("BENTO_OVERRIDES_FILE"):
            self._config["paths"]["overrides_file"] = os.getenv("BENTO_OVERRIDES_FILE")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"]
        )

    def get_ranking_config(self) -> RankingConfig:
        """Get ranking configuration."""
        ranking = self._config["ranking"]
        return RankingConfig(
            half_life_days=float(ranking["half_life_days"]),
            recency_weight=float(ranking["recency_weight"]),
            popularity_weight=float(ranking["popularity_weight"]),
            featured_boost=float(ranking["featured_boost"]),
            personalization_weight=float(ranking["personalization_weight"]),
            max_position_shift=float(ranking["max_position_shift"])
        )

    def get_layout_config(self) -> LayoutConfig:
        """Get layout configuration."""
        layout = self._config["layout"]
        return LayoutConfig(
            featured_band=int(layout["featured_band"]),
            large_band=int(layout["large_band"]),
            medium_band=int(layout["medium_band"]),
            size_boost_enabled=bool(layout["size_boost_enabled"])
        )

    def get_scorer_config(self) -> ScorerConfig:
        """Get recommendation scorer configuration."""
        scorer = self._config["scorer"]
        return ScorerConfig(
            base_url=scorer["base_url"],
            timeout_seconds=float(scorer["timeout_seconds"]),
            enabled=bool(scorer["enabled"])
        )

    def get_feed_config(self) -> FeedConfig:
        """Get feed configuration."""
        feed = self._config["feed"]
        return FeedConfig(
            cache_ttl_seconds=int(feed["cache_ttl_seconds"]),
            cache_max_entries=int(feed.get("cache_max_entries", 256))
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            data_dir=paths_config["data_dir"],
            user_data_dir=paths_config["user_data_dir"],
            catalog_file=paths_config["catalog_file"],
            overrides_file=paths_config["overrides_file"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_ranking_config() -> RankingConfig:
    """Get ranking configuration."""
    return config_manager.get_ranking_config()


def get_layout_config() -> LayoutConfig:
    """Get layout configuration."""
    return config_manager.get_layout_config()


def get_scorer_config() -> ScorerConfig:
    """Get recommendation scorer configuration."""
    return config_manager.get_scorer_config()


def get_feed_config() -> FeedConfig:
    """Get feed configuration."""
    return config_manager.get_feed_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
