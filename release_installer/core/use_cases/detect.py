"""
Detect use case — report the platform an install would target.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from release_installer.core.config.loader import ConfigError, load_config
from release_installer.core.errors import EXIT_CONFIG_ERROR, UnsupportedPlatform
from release_installer.core.models.platform import PlatformDescriptor
from release_installer.core.services.artifact_install.detection.platform_probe import (
    probe_platform,
)


@dataclass
class DetectResult:
    """Result of the detect use case."""

    platform: PlatformDescriptor | None = None
    os_release_path: str = ""
    manager_overridden: bool = False
    error: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict:
        result: dict = {"os_release_path": self.os_release_path}
        if self.error or self.platform is None:
            result["error"] = self.error or "platform not detected"
            return result
        result["os_family"] = self.platform.os_family.value
        result["arch"] = self.platform.arch.value
        result["service_manager"] = self.platform.service_manager.value
        result["manager_overridden"] = self.manager_overridden
        return result


def run_detect(config_path: Path | None = None, machine: str | None = None) -> DetectResult:
    """Probe the host platform.

    Args:
        config_path: Optional explicit path to installer.yml.
        machine: Machine type to use instead of the running host's.
    """
    result = DetectResult()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = EXIT_CONFIG_ERROR
        return result

    result.os_release_path = config.paths.os_release
    result.manager_overridden = config.service_manager is not None

    try:
        result.platform = probe_platform(
            os_release_path=Path(config.paths.os_release),
            machine=machine,
            service_manager=config.service_manager,
        )
    except UnsupportedPlatform as e:
        result.error = str(e)
        result.exit_code = e.exit_code

    return result
