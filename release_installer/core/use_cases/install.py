"""
Install use case — load config, pick the profile, run the pipeline.

The CLI layer only talks to this module; it never builds a pipeline or
catches installer exceptions itself.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from release_installer.core.config.loader import ConfigError, load_config
from release_installer.core.errors import (
    EXIT_CONFIG_ERROR,
    InstallerError,
    InsufficientPrivileges,
)
from release_installer.core.models.result import InstallationResult
from release_installer.core.services.artifact_install.domain.service_spec import (
    expand_placeholders,
    profile_variables,
)
from release_installer.core.services.artifact_install.orchestration.pipeline import (
    plan_installation,
    run_pipeline,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallRun:
    """Result of the install use case."""

    profile: str = ""
    dry_run: bool = False
    result: InstallationResult | None = None
    plan: dict[str, Any] | None = None
    usage_hints: list[str] = field(default_factory=list)
    error: str | None = None
    error_type: str | None = None
    failure_stage: str | None = None
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        data: dict = {"profile": self.profile, "dry_run": self.dry_run, "ok": self.ok}
        if self.error:
            data["error"] = self.error
            data["error_type"] = self.error_type
            data["failure_stage"] = self.failure_stage
            data["exit_code"] = self.exit_code
        if self.plan is not None:
            data["plan"] = self.plan
        if self.result is not None:
            data["result"] = self.result.to_dict()
        if self.usage_hints:
            data["usage_hints"] = self.usage_hints
        return data


def _check_root(euid: int | None) -> None:
    effective = os.geteuid() if euid is None else euid
    if effective != 0:
        raise InsufficientPrivileges(
            "Installation needs root (effective uid 0); re-run with sudo "
            "or set 'require_root: false' in installer.yml"
        )


def run_install(
    profile_name: str | None = None,
    *,
    config_path: Path | None = None,
    release_tag: str | None = None,
    dry_run: bool = False,
    euid: int | None = None,
) -> InstallRun:
    """Install one artifact profile.

    Args:
        profile_name: Profile to install (default: config ``default_profile``).
        config_path: Optional explicit path to installer.yml.
        release_tag: Install this release tag instead of the latest.
        dry_run: Plan only — probe, resolve and render, write nothing.
        euid: Effective uid to check instead of ``os.geteuid()``.

    Returns:
        InstallRun with the pipeline result (or plan) and the exit code.
    """
    run = InstallRun(profile=profile_name or "", dry_run=dry_run)

    try:
        config = load_config(config_path)
        profile = config.get_profile(profile_name)
    except ConfigError as e:
        run.error = str(e)
        run.error_type = "ConfigError"
        run.exit_code = EXIT_CONFIG_ERROR
        return run

    run.profile = profile.name

    try:
        if dry_run:
            run.plan = plan_installation(profile, config, release_tag=release_tag)
            return run
        if config.require_root:
            _check_root(euid)
    except InstallerError as e:
        run.error = str(e)
        run.error_type = e.category
        run.failure_stage = e.stage.value if e.stage else None
        run.exit_code = e.exit_code
        return run

    result = run_pipeline(profile, config, release_tag=release_tag)
    run.result = result
    run.exit_code = result.exit_code

    if not result.success:
        run.error = result.error
        run.error_type = result.error_type
        run.failure_stage = result.failure_stage.value if result.failure_stage else None
        return run

    variables = profile_variables(profile, config_dir=config.paths.config_dir)
    run.usage_hints = [expand_placeholders(h, variables) for h in profile.usage_hints]
    return run
