"""Configuration profile management.

Provides utilities for detecting configuration profiles from the environment.
"""

import os
from enum import Enum
from pathlib import Path


class Profile(Enum):
    """Available configuration profiles."""

    DEV = "dev"
    PROD = "prod"
    TEST = "test"


def detect_profile() -> Profile:
    """Detect appropriate configuration profile.

    Reads the STUDYTRACK_PROFILE environment variable and falls back to dev.

    Returns:
        Profile enum value
    """
    env_profile = os.environ.get("STUDYTRACK_PROFILE", "").lower()
    profile_map = {
        "prod": Profile.PROD,
        "dev": Profile.DEV,
        "test": Profile.TEST,
    }
    return profile_map.get(env_profile, Profile.DEV)


def get_profile_path(profile: Profile | None = None, config_dir: Path | None = None) -> Path:
    """Get path to profile configuration file.

    Args:
        profile: Profile to use, or None to auto-detect
        config_dir: Configuration directory, or None for default

    Returns:
        Path to profile YAML file
    """
    if profile is None:
        profile = detect_profile()

    if config_dir is None:
        config_dir = Path(__file__).parent.parent.parent.parent / "config"

    return config_dir / f"{profile.value}.yaml"


def is_development() -> bool:
    """Check if running in development mode."""
    return detect_profile() == Profile.DEV


def is_production() -> bool:
    """Check if running in production mode."""
    return detect_profile() == Profile.PROD


__all__ = [
    "Profile",
    "detect_profile",
    "get_profile_path",
    "is_development",
    "is_production",
]
