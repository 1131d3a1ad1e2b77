"""
Platform model — the host identity an installation run targets.

Probed once at the start of a run and then passed, unchanged, to every
later stage.  Nothing downstream re-reads /etc/os-release or uname.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OsFamily(StrEnum):
    """Supported Linux distribution families."""

    DEBIAN = "debian"
    ALPINE = "alpine"


class ArchToken(StrEnum):
    """Canonical CPU architecture tokens used in artifact names."""

    AMD64 = "amd64"
    ARM64 = "arm64"
    ARMV7 = "armv7"


class ServiceManager(StrEnum):
    """Service managers a unit descriptor can be written for."""

    SYSTEMD = "systemd"
    OPENRC = "openrc"


# Each family ships exactly one service manager out of the box.
FAMILY_SERVICE_MANAGER: dict[OsFamily, ServiceManager] = {
    OsFamily.DEBIAN: ServiceManager.SYSTEMD,
    OsFamily.ALPINE: ServiceManager.OPENRC,
}


class PlatformDescriptor(BaseModel):
    """Result of the platform probe.  Immutable."""

    model_config = ConfigDict(frozen=True)

    os_family: OsFamily
    arch: ArchToken
    service_manager: ServiceManager

    def label(self) -> str:
        """Short human-readable form, e.g. ``debian/amd64 (systemd)``."""
        return f"{self.os_family}/{self.arch} ({self.service_manager})"
