"""
L0 Data — built-in artifact profiles.
"""

from release_installer.core.services.artifact_install.data.profiles import (  # noqa: F401
    BLACKBOX_DEFAULT_CONFIG,
    BUILTIN_PROFILES,
)
