"""
Installation result — the terminal value of one installation run.

The pipeline never raises past its boundary: every outcome, success or
failure, is captured here and handed to the CLI layer, which turns it
into output and an exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class InstallStage(StrEnum):
    """Pipeline stages, in execution order."""

    PLATFORM = "platform"
    RESOLVE = "resolve"
    FETCH = "fetch"
    INSTALL = "install"
    UNIT = "unit"
    SERVICE = "service"
    VERIFY = "verify"


@dataclass
class InstallationResult:
    """Outcome of an installation run."""

    profile: str
    success: bool = False
    installed_version: str = ""
    verification_endpoint: str | None = None
    failure_stage: InstallStage | None = None
    platform: dict[str, str] = field(default_factory=dict)
    binary_path: str = ""
    unit_path: str = ""
    already_installed: bool = False
    service_active: bool | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    error_type: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "profile": self.profile,
            "success": self.success,
            "installed_version": self.installed_version,
            "verification_endpoint": self.verification_endpoint,
            "failure_stage": self.failure_stage.value if self.failure_stage else None,
            "platform": dict(self.platform),
            "binary_path": self.binary_path,
            "unit_path": self.unit_path,
            "already_installed": self.already_installed,
            "service_active": self.service_active,
            "warnings": list(self.warnings),
            "error": self.error,
            "error_type": self.error_type,
            "exit_code": self.exit_code,
        }
