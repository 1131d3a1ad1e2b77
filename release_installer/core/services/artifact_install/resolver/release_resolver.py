"""
L2 Resolver — Release version and download URL resolution.

Asks the release index (GitHub "latest release" API) for the current
tag exactly once, then renders the profile's asset template into a
concrete download URL for the probed platform.

No retries happen here.  Rate limiting (HTTP 403/429) and every other
failure surface immediately as ``VersionResolutionError``; whether to
try again is the caller's decision.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any

from release_installer import __version__
from release_installer.core.errors import VersionResolutionError
from release_installer.core.models.platform import PlatformDescriptor
from release_installer.core.models.profile import ArtifactProfile
from release_installer.core.models.release import ReleaseArtifact

logger = logging.getLogger(__name__)

USER_AGENT = f"release-installer/{__version__}"


def strip_tag(tag: str) -> str:
    """Drop one optional leading ``v`` from a release tag."""
    return tag[1:] if tag.startswith("v") else tag


def render_asset_name(
    profile: ArtifactProfile,
    platform: PlatformDescriptor,
    *,
    version: str,
    tag: str,
) -> str:
    """Substitute ``{version}`` ``{tag}`` ``{arch}`` ``{os_family}`` ``{name}``."""
    values = {
        "version": version,
        "tag": tag,
        "arch": profile.arch_name(platform.arch),
        "os_family": platform.os_family.value,
        "name": profile.name,
    }
    result = profile.asset_template
    for key, value in values.items():
        result = result.replace(f"{{{key}}}", value)
    return result


def build_release_artifact(
    profile: ArtifactProfile,
    platform: PlatformDescriptor,
    tag: str,
    *,
    download_base: str = "https://github.com",
) -> ReleaseArtifact:
    """Turn a known tag into a ``ReleaseArtifact`` without any network call."""
    tag = tag.strip()
    version = strip_tag(tag)
    if not version:
        raise VersionResolutionError(f"Empty release tag for {profile.repo}")

    asset = render_asset_name(profile, platform, version=version, tag=tag)
    url = f"{download_base.rstrip('/')}/{profile.repo}/releases/download/{tag}/{asset}"
    return ReleaseArtifact(
        version=version,
        tag=tag,
        download_url=url,
        asset_name=asset,
    )


def fetch_latest_tag(
    repo: str,
    *,
    api_base: str = "https://api.github.com",
    timeout: float = 15.0,
    token: str | None = None,
) -> str:
    """Query the release index once and return the raw ``tag_name``.

    Raises:
        VersionResolutionError: Non-2xx status, network failure, empty or
            non-JSON body, or no usable ``tag_name`` field.
    """
    api_url = f"{api_base.rstrip('/')}/repos/{repo}/releases/latest"
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    logger.debug("GET %s", api_url)
    req = urllib.request.Request(api_url, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            body = resp.read()
    except urllib.error.HTTPError as exc:
        hint = " (rate limited?)" if exc.code in (403, 429) else ""
        raise VersionResolutionError(
            f"Release index for {repo} returned HTTP {exc.code}{hint}"
        ) from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        reason = getattr(exc, "reason", exc)
        raise VersionResolutionError(
            f"Cannot reach release index for {repo}: {reason}"
        ) from exc
    except (http.client.HTTPException, ValueError) as exc:
        raise VersionResolutionError(
            f"Bad response from release index for {repo}: {type(exc).__name__}: {exc}"
        ) from exc

    if not 200 <= status < 300:
        raise VersionResolutionError(
            f"Release index for {repo} returned HTTP {status}"
        )
    if not body or not body.strip():
        raise VersionResolutionError(f"Release index for {repo} returned an empty body")

    try:
        data: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise VersionResolutionError(
            f"Release index for {repo} returned invalid JSON: {exc}"
        ) from exc

    if not isinstance(data, dict):
        raise VersionResolutionError(
            f"Release index for {repo} returned {type(data).__name__}, expected an object"
        )

    tag = data.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise VersionResolutionError(f"Release index for {repo} has no tag_name")
    return tag.strip()


def resolve_release(
    profile: ArtifactProfile,
    platform: PlatformDescriptor,
    *,
    api_base: str = "https://api.github.com",
    download_base: str = "https://github.com",
    timeout: float = 15.0,
    token_env: str = "GITHUB_TOKEN",
    pinned_tag: str | None = None,
) -> ReleaseArtifact:
    """Resolve the release to install for ``profile`` on ``platform``.

    Args:
        profile: Artifact profile (repo + asset template).
        platform: Probed platform; supplies ``{arch}`` and ``{os_family}``.
        api_base: Release index base URL.
        download_base: Base URL release assets are downloaded from.
        timeout: Seconds for the single index request.
        token_env: Env var holding an optional API token.
        pinned_tag: Use this tag and skip the index entirely.

    Returns:
        ``ReleaseArtifact`` with version, tag and download URL.
    """
    if pinned_tag:
        logger.info("Using pinned release %s for %s", pinned_tag, profile.repo)
        tag = pinned_tag
    else:
        logger.info("Resolving latest release of %s", profile.repo)
        token = os.environ.get(token_env) if token_env else None
        tag = fetch_latest_tag(
            profile.repo,
            api_base=api_base,
            timeout=timeout,
            token=token or None,
        )

    artifact = build_release_artifact(
        profile, platform, tag, download_base=download_base,
    )
    logger.info("Resolved %s %s → %s", profile.name, artifact.version, artifact.download_url)
    return artifact
