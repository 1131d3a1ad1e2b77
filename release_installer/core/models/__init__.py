"""
Domain models — typed values passed between installation stages.

All models are re-exported here for convenient access:

    from release_installer.core.models import ArtifactProfile, PlatformDescriptor
"""

from release_installer.core.models.platform import (
    FAMILY_SERVICE_MANAGER,
    ArchToken,
    OsFamily,
    PlatformDescriptor,
    ServiceManager,
)
from release_installer.core.models.profile import ArtifactProfile, ConfigFile, ServiceProfile
from release_installer.core.models.release import ReleaseArtifact
from release_installer.core.models.result import InstallationResult, InstallStage
from release_installer.core.models.service import RestartPolicy, ServiceSpec

__all__ = [
    # platform.py
    "FAMILY_SERVICE_MANAGER",
    "ArchToken",
    "OsFamily",
    "PlatformDescriptor",
    "ServiceManager",
    # profile.py
    "ArtifactProfile",
    "ConfigFile",
    "ServiceProfile",
    # release.py
    "ReleaseArtifact",
    # result.py
    "InstallationResult",
    "InstallStage",
    # service.py
    "RestartPolicy",
    "ServiceSpec",
]
