"""
Configuration loader — reads installer.yml into typed settings.

The file is optional: with no file anywhere, every setting has a default
and the built-in artifact profiles are available.  When present, it is
read as YAML, validated against Pydantic schemas, and user profiles are
merged over the built-in ones.

Lookup order:
    --config PATH  >  RI_CONFIG env var  >  installer.yml in cwd or a parent
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from release_installer.core.models.platform import ServiceManager
from release_installer.core.models.profile import ArtifactProfile

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "installer.yml"
CONFIG_ENV_VAR = "RI_CONFIG"


class ConfigError(Exception):
    """Raised when installer configuration is invalid or unreadable."""


class PathsConfig(BaseModel):
    """Filesystem locations.  Every write of a run lands under one of these."""

    bin_dir: str = "/usr/local/bin"
    config_dir: str = "/etc"
    systemd_unit_dir: str = "/etc/systemd/system"
    openrc_init_dir: str = "/etc/init.d"
    openrc_conf_dir: str = "/etc/conf.d"
    log_dir: str = "/var/log"
    run_dir: str = "/var/run"
    tmp_dir: str | None = None      # None → system temp dir
    os_release: str = "/etc/os-release"


class ReleaseIndexConfig(BaseModel):
    """Where and how the latest release tag is looked up."""

    api_base: str = "https://api.github.com"
    download_base: str = "https://github.com"
    timeout: float = 15.0
    token_env: str = "GITHUB_TOKEN"


class DownloadConfig(BaseModel):
    timeout: float = 120.0


class VerificationConfig(BaseModel):
    """Health-check polling after the service is (re)started."""

    initial_delay: float = 3.0
    max_wait: float = 30.0
    interval: float = 2.0
    timeout: float = 5.0


class InstallerConfig(BaseModel):
    """Root configuration — loaded from installer.yml or all defaults."""

    version: int = 1
    default_profile: str = "node_exporter"
    require_root: bool = True
    service_manager: ServiceManager | None = None   # override the family default

    paths: PathsConfig = Field(default_factory=PathsConfig)
    release_index: ReleaseIndexConfig = Field(default_factory=ReleaseIndexConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)

    profiles: dict[str, ArtifactProfile] = Field(default_factory=dict)

    def get_profile(self, name: str | None = None) -> ArtifactProfile:
        """Look up a profile by name (default: ``default_profile``).

        Raises:
            ConfigError: If no profile has that name.
        """
        key = name or self.default_profile
        profile = self.profiles.get(key)
        if profile is None:
            available = ", ".join(sorted(self.profiles)) or "(none)"
            raise ConfigError(f"Unknown profile '{key}'. Available: {available}")
        return profile


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for installer.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to installer.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def resolve_config_path(explicit: Path | None = None) -> Path | None:
    """Apply the lookup order: explicit path, env var, upward search."""
    if explicit is not None:
        return explicit
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return find_config_file()


def merge_profiles(user_profiles: dict | None) -> dict[str, dict]:
    """Overlay user profile dicts on the built-in ones.

    A user profile that shares a built-in name only needs the keys it
    changes; nested ``service`` mappings are merged one level deep.
    """
    from release_installer.core.services.artifact_install.data.profiles import (
        BUILTIN_PROFILES,
    )

    merged: dict[str, dict] = {
        name: dict(data) for name, data in BUILTIN_PROFILES.items()
    }
    for name, data in (user_profiles or {}).items():
        if not isinstance(data, dict):
            raise ConfigError(f"Profile '{name}' must be a mapping")
        base = merged.get(name, {})
        combined = {**base, **data}
        if isinstance(base.get("service"), dict) and isinstance(data.get("service"), dict):
            combined["service"] = {**base["service"], **data["service"]}
        merged[name] = combined

    for name, data in merged.items():
        data.setdefault("name", name)
    return merged


def load_config(path: Path | None = None) -> InstallerConfig:
    """Load and validate installer configuration.

    Args:
        path: Explicit path to installer.yml.  If None, the env var and an
            upward search are tried; if nothing is found, defaults apply.

    Returns:
        Validated InstallerConfig.

    Raises:
        ConfigError: If the file is missing (when given explicitly) or invalid.
    """
    path = resolve_config_path(path)

    data: dict = {}
    if path is None:
        logger.debug("No %s found — using defaults", CONFIG_FILE)
    else:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        logger.debug("Loading installer config from %s", path)

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {path}, got {type(loaded).__name__}"
            )
        data = loaded

    data = dict(data)
    data["profiles"] = merge_profiles(data.get("profiles"))

    try:
        config = InstallerConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    if config.default_profile not in config.profiles:
        raise ConfigError(
            f"default_profile '{config.default_profile}' is not a known profile"
        )

    logger.info("Loaded installer config with %d profiles", len(config.profiles))
    return config
