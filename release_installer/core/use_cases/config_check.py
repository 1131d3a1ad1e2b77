"""
Config check use case — validate installer.yml and report issues.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from release_installer.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    InstallerConfig,
    load_config,
    resolve_config_path,
)


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: InstallerConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "default_profile": self.config.default_profile if self.config else None,
            "profile_count": len(self.config.profiles) if self.config else 0,
        }


def _binds_all_interfaces(listen_address: str) -> bool:
    host = listen_address.rpartition(":")[0].strip("[]")
    if not host:
        return True
    try:
        return ipaddress.ip_address(host).is_unspecified
    except ValueError:
        return False


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate installer configuration and report issues.

    Args:
        config_path: Optional explicit path to installer.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()
    result.config_path = resolve_config_path(config_path)

    try:
        config = load_config(result.config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if result.config_path is None:
        result.warnings.append(f"No {CONFIG_FILE} found — built-in defaults are in use.")

    if not config.require_root:
        result.warnings.append("require_root is disabled; installs will not check for root.")

    # Paths must be absolute; unit descriptors embed them verbatim
    for key, value in config.paths.model_dump().items():
        if value is not None and not PurePosixPath(value).is_absolute():
            result.errors.append(f"paths.{key} must be absolute: {value}")

    # Binary name collisions would make two profiles share one target
    owners: dict[str, str] = {}
    for name, profile in sorted(config.profiles.items()):
        other = owners.setdefault(profile.binary_name, name)
        if other != name:
            result.errors.append(
                f"Profiles '{other}' and '{name}' install the same binary '{profile.binary_name}'"
            )

        if profile.service is None:
            continue
        if _binds_all_interfaces(profile.service.listen_address):
            result.warnings.append(
                f"Profile '{name}' listens on all interfaces "
                f"({profile.service.listen_address}); consider 127.0.0.1."
            )
        if not profile.service.health_marker:
            result.warnings.append(
                f"Profile '{name}' has no health_marker; any 2xx response verifies it."
            )

    result.valid = len(result.errors) == 0
    return result
