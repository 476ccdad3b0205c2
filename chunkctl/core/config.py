"""Configuration management for chunkctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from chunkctl.core.exceptions import ConfigurationError, ProfileNotFoundError
from chunkctl.transfer.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
)

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "chunkctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
PROGRESS_DIR = CONFIG_DIR / "progress"

DEFAULT_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30

# Environment variable names
ENV_URL = "CHUNKCTL_URL"
ENV_PROFILE = "CHUNKCTL_PROFILE"
ENV_VERIFY_SSL = "CHUNKCTL_VERIFY_SSL"
ENV_TIMEOUT = "CHUNKCTL_TIMEOUT"
ENV_CHUNK_SIZE = "CHUNKCTL_CHUNK_SIZE"
ENV_PROGRESS_DIR = "CHUNKCTL_PROGRESS_DIR"
ENV_CONFIG = "CHUNKCTL_CONFIG"


def config_file_path() -> Path:
    """Config file location, overridable via CHUNKCTL_CONFIG."""
    return Path(os.getenv(ENV_CONFIG) or CONFIG_FILE).expanduser()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer", field=name, value=raw) from e


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Connection and transfer settings for one chunk store."""

    url: str
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Build from a YAML mapping, ignoring unknown keys.

        Raises:
            ConfigurationError: If ``url`` is missing.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if not values.get("url"):
            raise ConfigurationError("Profile is missing 'url'", field="url")
        return cls(**values)


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    progress_dir: Path = PROGRESS_DIR
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or config_file_path()
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")
                if progress_dir := data.get("progress_dir"):
                    config.progress_dir = Path(progress_dir).expanduser()

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except (OSError, yaml.YAMLError, AttributeError, TypeError) as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        # Environment variable overrides
        if url := os.getenv(ENV_URL):
            base = config.profiles.get("default", Profile(url=url))
            config.profiles["default"] = Profile(
                url=url,
                verify_ssl=os.getenv(ENV_VERIFY_SSL, "true").lower() in ("true", "1", "yes"),
                timeout=_env_int(ENV_TIMEOUT, base.timeout),
                chunk_size=_env_int(ENV_CHUNK_SIZE, base.chunk_size),
                max_concurrency=base.max_concurrency,
                max_retries=base.max_retries,
            )

        if profile := os.getenv(ENV_PROFILE):
            config.default_profile = profile

        if progress_dir := os.getenv(ENV_PROGRESS_DIR):
            config.progress_dir = Path(progress_dir).expanduser()

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file.

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or config_file_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "progress_dir": str(self.progress_dir),
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Args:
            name: Profile name. If None, uses default_profile.

        Returns:
            Profile configuration.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(self, name: str, url: str, **options: Any) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            url: Remote store URL.
            **options: Remaining Profile fields.

        Returns:
            Created profile.
        """
        profile = Profile(url=url, **options)
        self.profiles[name] = profile
        return profile
