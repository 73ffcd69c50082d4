"""YAML configuration loader with inheritance support.

Supports:
- Loading YAML config files
- Config inheritance via 'extends' key
- Deep merging of nested config
- Environment overrides for deployment secrets
"""

import os
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from studytrack.errors import ConfigError

from . import LoggingConfig, StorageConfig, StudyTrackConfig, TrackerConfig

WEEK_STARTS = ("sunday", "monday")

ENV_MONGODB_URI = "STUDYTRACK_MONGODB_URI"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Values from override take precedence. Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_with_inheritance(path: Path) -> dict[str, Any]:
    """Load YAML file with inheritance support.

    If the file contains an 'extends' key, the base config is loaded first
    and merged with the current config.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if "extends" in config:
        base_name = config.pop("extends")
        base_path = path.parent / base_name
        base_config = load_yaml_with_inheritance(base_path)
        config = deep_merge(base_config, config)

    return config


def _build_section(cls: type, name: str, data: dict[str, Any]) -> Any:
    """Instantiate a config section, rejecting unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}")
    return cls(**data)


def dict_to_config(data: dict[str, Any]) -> StudyTrackConfig:
    """Convert raw dict to typed StudyTrackConfig dataclass."""
    root = data.get("studytrack", {}) or {}

    unknown = set(root) - {"storage", "tracker", "logging"}
    if unknown:
        raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")

    # YAML gives None for empty sections
    def safe_get(key: str) -> dict[str, Any]:
        value = root.get(key, {})
        return value if value is not None else {}

    tracker = _build_section(TrackerConfig, "tracker", safe_get("tracker"))
    if tracker.week_start not in WEEK_STARTS:
        raise ConfigError(
            f"tracker.week_start must be one of {', '.join(WEEK_STARTS)}, got '{tracker.week_start}'"
        )
    if tracker.calendar_days < 1:
        raise ConfigError("tracker.calendar_days must be at least 1")

    return StudyTrackConfig(
        storage=_build_section(StorageConfig, "storage", safe_get("storage")),
        tracker=tracker,
        logging=_build_section(LoggingConfig, "logging", safe_get("logging")),
    )


def apply_env_overrides(config: StudyTrackConfig) -> StudyTrackConfig:
    """Apply environment variable overrides to a loaded config."""
    uri = os.environ.get(ENV_MONGODB_URI)
    if uri:
        config.storage.uri = uri
    return config


class YAMLConfigLoader:
    """YAML configuration loader implementation."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize loader with optional config directory.

        Args:
            config_dir: Directory containing config files.
                        Defaults to 'config' relative to project root.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent.parent / "config"
        self._config_dir = config_dir

    def load(self, path: Path) -> StudyTrackConfig:
        """Load configuration from file path.

        Args:
            path: Path to YAML config file

        Returns:
            Parsed StudyTrackConfig
        """
        raw_config = load_yaml_with_inheritance(path)
        return apply_env_overrides(dict_to_config(raw_config))

    def load_profile(self, profile: str) -> StudyTrackConfig:
        """Load configuration by profile name.

        Args:
            profile: Profile name (e.g., 'dev', 'prod')

        Returns:
            Parsed StudyTrackConfig for the profile
        """
        config_path = self._config_dir / f"{profile}.yaml"
        return self.load(config_path)

    def get_config_dir(self) -> Path:
        """Get the configuration directory path."""
        return self._config_dir


def load_config(path: str | Path | None = None, profile: str | None = None) -> StudyTrackConfig:
    """Load StudyTrack configuration.

    Args:
        path: Direct path to config file (takes precedence)
        profile: Profile name ('dev', 'prod', 'test') if path not given

    Returns:
        Parsed StudyTrackConfig

    Examples:
        >>> config = load_config(profile="dev")
        >>> config = load_config(path="/path/to/config.yaml")
    """
    from .profiles import detect_profile

    loader = YAMLConfigLoader()

    if path is not None:
        return loader.load(Path(path))
    elif profile is not None:
        return loader.load_profile(profile)
    else:
        return loader.load_profile(detect_profile().value)


__all__ = [
    "YAMLConfigLoader",
    "apply_env_overrides",
    "deep_merge",
    "dict_to_config",
    "load_config",
    "load_yaml_with_inheritance",
]
