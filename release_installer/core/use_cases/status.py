"""
Status use case — what is on disk for a profile, and is its service up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from release_installer.core.config.loader import ConfigError, load_config
from release_installer.core.errors import EXIT_CONFIG_ERROR, UnsupportedPlatform
from release_installer.core.services.artifact_install.detection.platform_probe import (
    probe_platform,
)
from release_installer.core.services.artifact_install.execution.service_controller import (
    ServiceController,
)
from release_installer.core.services.artifact_install.execution.unit_writer import (
    descriptor_path,
)


@dataclass
class StatusResult:
    """Installed state of one profile."""

    profile: str = ""
    binary_path: str = ""
    binary_present: bool = False
    unit_path: str | None = None
    unit_present: bool = False
    service: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    exit_code: int = 0

    @property
    def active(self) -> bool:
        return bool(self.service.get("active"))

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {"profile": self.profile}
        if self.error:
            result["error"] = self.error
            return result
        result["binary_path"] = self.binary_path
        result["binary_present"] = self.binary_present
        result["unit_path"] = self.unit_path
        result["unit_present"] = self.unit_present
        result["service"] = self.service or None
        return result


def get_status(profile_name: str | None = None, config_path: Path | None = None) -> StatusResult:
    """Report binary, descriptor and service state for a profile.

    Profiles without a service only report the binary.
    """
    result = StatusResult(profile=profile_name or "")

    try:
        config = load_config(config_path)
        profile = config.get_profile(profile_name)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = EXIT_CONFIG_ERROR
        return result

    result.profile = profile.name
    binary = Path(config.paths.bin_dir) / profile.binary_name
    result.binary_path = str(binary)
    result.binary_present = binary.is_file()

    if profile.service is None:
        return result

    try:
        platform = probe_platform(
            os_release_path=Path(config.paths.os_release),
            service_manager=config.service_manager,
        )
    except UnsupportedPlatform as e:
        result.error = str(e)
        result.exit_code = e.exit_code
        return result

    unit = descriptor_path(profile.name, platform.service_manager, config.paths.model_dump())
    result.unit_path = str(unit)
    result.unit_present = unit.is_file()

    if result.unit_present:
        result.service = ServiceController(profile.name, platform.service_manager).status()

    return result
