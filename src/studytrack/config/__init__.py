"""Configuration module for StudyTrack.

This module provides configuration loading and profile management.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass
class StorageConfig:
    """MongoDB storage configuration."""

    uri: str = "mongodb://localhost:27017"
    database: str = "studytrack"
    max_pool_size: int = 50
    min_pool_size: int = 10
    connect_timeout_ms: int = 5000
    server_selection_timeout_ms: int = 5000


@dataclass
class TrackerConfig:
    """Progress aggregation configuration."""

    timezone: str = "UTC"
    week_start: str = "sunday"
    calendar_days: int = 365
    cache_enabled: bool = True
    cache_ttl_seconds: int = 300


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class StudyTrackConfig:
    """Main StudyTrack configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader(Protocol):
    """Protocol for configuration loading."""

    def load(self, path: Path) -> StudyTrackConfig:
        """Load configuration from file path."""
        ...

    def load_profile(self, profile: str) -> StudyTrackConfig:
        """Load configuration by profile name (dev, prod, test)."""
        ...

    def get_config_dir(self) -> Path:
        """Get the configuration directory path."""
        ...


# Public API
__all__ = [
    "ConfigLoader",
    "LoggingConfig",
    "StorageConfig",
    "StudyTrackConfig",
    "TrackerConfig",
]
