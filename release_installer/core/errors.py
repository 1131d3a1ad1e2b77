"""
Installer error taxonomy.

Every fatal condition of an installation run is one of these classes.
Each carries the pipeline stage it belongs to and the process exit code
the CLI maps it to, so scripting callers can tell failures apart.

Not everything here aborts with the same consequences:

- ``UnsupportedPlatform`` fires before any side effect.
- ``VersionResolutionError`` / ``DownloadError`` fire before the binary is
  placed, so nothing is left behind.
- ``ServiceStartError`` fires after the binary, account and unit descriptor
  are already on disk.  They are NOT rolled back.
- ``VerificationFailed`` is a warning-level outcome: the service may well
  be running and usable.

"Already installed" is not an error and has no class here.
"""

from __future__ import annotations

from release_installer.core.models.result import InstallStage

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG_ERROR = 16
EXIT_INTERRUPTED = 130


class InstallerError(Exception):
    """Base class for all installation failures."""

    stage: InstallStage | None = None
    exit_code: int = EXIT_UNEXPECTED

    def __init__(self, message: str, *, stage: InstallStage | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    @property
    def category(self) -> str:
        """Class name, used as the category in one-line error output."""
        return type(self).__name__


class UnsupportedPlatform(InstallerError):
    """OS family or architecture outside the recognised set."""

    stage = InstallStage.PLATFORM
    exit_code = 10


class VersionResolutionError(InstallerError):
    """The release index could not be queried or returned no usable tag."""

    stage = InstallStage.RESOLVE
    exit_code = 11


class DownloadError(InstallerError):
    """The artifact download failed, was empty, or had the wrong contents."""

    stage = InstallStage.FETCH
    exit_code = 12


class InstallationError(InstallerError):
    """The binary, account or config file could not be put in place."""

    stage = InstallStage.INSTALL
    exit_code = 13


class ServiceStartError(InstallerError):
    """The service manager refused to start or restart the service."""

    stage = InstallStage.SERVICE
    exit_code = 14


class VerificationFailed(InstallerError):
    """The health check never saw the expected marker."""

    stage = InstallStage.VERIFY
    exit_code = 15


class InsufficientPrivileges(InstallerError):
    """The run needs root and is not root."""

    exit_code = 17


class InstallInterrupted(InstallerError):
    """SIGTERM arrived mid-run."""

    exit_code = EXIT_INTERRUPTED
