"""
L3 Detection — read-only probes of the host.
"""

from release_installer.core.services.artifact_install.detection.platform_probe import (  # noqa: F401
    detect_arch,
    detect_os_family,
    parse_os_release,
    probe_platform,
)
