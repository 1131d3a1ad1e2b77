"""
L2 Resolver — release index lookup and download URL construction.
"""

from release_installer.core.services.artifact_install.resolver.release_resolver import (  # noqa: F401
    build_release_artifact,
    fetch_latest_tag,
    render_asset_name,
    resolve_release,
)
