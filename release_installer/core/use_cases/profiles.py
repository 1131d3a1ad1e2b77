"""
Profiles use case — list profiles and preview their service descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from release_installer.core.config.loader import ConfigError, load_config
from release_installer.core.errors import EXIT_CONFIG_ERROR, UnsupportedPlatform
from release_installer.core.models.platform import ServiceManager
from release_installer.core.services.artifact_install.detection.platform_probe import (
    probe_platform,
)
from release_installer.core.services.artifact_install.domain.service_spec import (
    build_service_spec,
)
from release_installer.core.services.artifact_install.execution.unit_writer import (
    render_descriptors,
)


@dataclass
class ProfileListResult:
    default_profile: str = ""
    profiles: list[dict] = field(default_factory=list)
    error: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"default_profile": self.default_profile, "profiles": self.profiles}


@dataclass
class RenderResult:
    profile: str = ""
    manager: str = ""
    files: list[dict] = field(default_factory=list)
    error: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict:
        if self.error:
            return {"profile": self.profile, "error": self.error}
        return {"profile": self.profile, "manager": self.manager, "files": self.files}


def list_profiles(config_path: Path | None = None) -> ProfileListResult:
    """Summarise every profile known to the configuration."""
    result = ProfileListResult()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = EXIT_CONFIG_ERROR
        return result

    result.default_profile = config.default_profile
    for name, profile in sorted(config.profiles.items()):
        result.profiles.append({
            "name": name,
            "description": profile.description,
            "repo": profile.repo,
            "binary": profile.binary_name,
            "service": profile.service is not None,
            "listen_address": profile.service.listen_address if profile.service else None,
            "supported_arches": [a.value for a in profile.supported_arches],
        })
    return result


def render_profile(
    profile_name: str,
    manager: ServiceManager | None = None,
    config_path: Path | None = None,
) -> RenderResult:
    """Render the descriptor(s) ``install`` would write, without writing.

    The manager is, in order: the argument, the config override, or the
    one the probed platform uses.
    """
    result = RenderResult(profile=profile_name)
    try:
        config = load_config(config_path)
        profile = config.get_profile(profile_name)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = EXIT_CONFIG_ERROR
        return result

    if profile.service is None:
        result.error = f"Profile '{profile.name}' does not run as a service"
        result.exit_code = 1
        return result

    if manager is None:
        manager = config.service_manager
    if manager is None:
        try:
            manager = probe_platform(
                os_release_path=Path(config.paths.os_release),
            ).service_manager
        except UnsupportedPlatform as e:
            result.error = f"{e} (pass --manager to choose one)"
            result.exit_code = e.exit_code
            return result

    paths = config.paths
    spec = build_service_spec(
        profile,
        exec_path=str(Path(paths.bin_dir) / profile.binary_name),
        config_dir=paths.config_dir,
        log_dir=paths.log_dir,
        run_dir=paths.run_dir,
    )
    result.manager = manager.value
    result.files = [
        {"path": str(path), "mode": f"{mode:o}", "content": text}
        for path, text, mode in render_descriptors(spec, manager, paths.model_dump())
    ]
    return result
