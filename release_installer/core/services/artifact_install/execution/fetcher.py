"""
L4 Execution — Artifact download and unpacking.

Streams the release asset into the run's scoped workdir, checks it is
non-empty, and, when the asset is a gzip tar bundle, pulls out the one
executable the profile expects.  Partial files are removed on failure;
the workdir itself is removed by its owner (``scoped_workdir``).
"""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from release_installer.core.errors import DownloadError
from release_installer.core.models.release import ReleaseArtifact
from release_installer.core.services.artifact_install.domain.download_helpers import (
    binary_members,
    human_size,
    is_gzip_header,
)
from release_installer.core.services.artifact_install.resolver.release_resolver import (
    USER_AGENT,
)

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


def _is_gzip(path: Path) -> bool:
    with open(path, "rb") as f:
        return is_gzip_header(f.read(2))


def _declared_length(resp) -> int | None:
    """Content-Length of an identity-encoded response, or None."""
    headers = getattr(resp, "headers", None)
    if headers is None or headers.get("Content-Encoding"):
        return None
    value = headers.get("Content-Length")
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def download_file(url: str, dest_dir: Path, *, timeout: float = 120.0, suffix: str = "") -> Path:
    """Download ``url`` into a uniquely named file inside ``dest_dir``.

    Raises:
        DownloadError: Non-2xx status, network failure, a body shorter or
            longer than its Content-Length, or an empty body.
            The partial file is removed before raising.
    """
    fd, tmp_name = tempfile.mkstemp(dir=dest_dir, prefix="download-", suffix=suffix)
    path = Path(tmp_name)
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})

    logger.debug("GET %s → %s", url, path)
    try:
        with os.fdopen(fd, "wb") as out:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                status = getattr(resp, "status", 200)
                if not 200 <= status < 300:
                    raise DownloadError(f"Download of {url} returned HTTP {status}")
                expected = _declared_length(resp)
                shutil.copyfileobj(resp, out, _CHUNK)
                written = out.tell()
        if expected is not None and written != expected:
            raise DownloadError(
                f"Download of {url} incomplete: got {written} of {expected} bytes"
            )
    except DownloadError:
        path.unlink(missing_ok=True)
        raise
    except urllib.error.HTTPError as exc:
        path.unlink(missing_ok=True)
        raise DownloadError(f"Download of {url} returned HTTP {exc.code}") from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        path.unlink(missing_ok=True)
        reason = getattr(exc, "reason", exc)
        raise DownloadError(f"Download of {url} failed: {reason}") from exc
    except (http.client.HTTPException, ValueError) as exc:
        path.unlink(missing_ok=True)
        raise DownloadError(f"Download of {url} failed: {type(exc).__name__}: {exc}") from exc
    except BaseException:
        # Interrupted mid-download: leave nothing half-written behind.
        path.unlink(missing_ok=True)
        raise

    size = path.stat().st_size
    if size == 0:
        path.unlink(missing_ok=True)
        raise DownloadError(f"Downloaded file is empty: {url}")

    logger.info("Downloaded %s (%s)", url, human_size(size))
    return path


def extract_binary(bundle: Path, binary_name: str, dest_dir: Path) -> Path:
    """Extract the single executable called ``binary_name`` from a tar.gz.

    Only that member is read; nothing else in the bundle touches disk.

    Raises:
        DownloadError: Not a readable tar.gz, or not exactly one regular
            file with that base name, or the file is empty.
    """
    try:
        with tarfile.open(bundle, "r:gz") as tar:
            matches = binary_members(tar.getmembers(), binary_name)
            if len(matches) != 1:
                raise DownloadError(
                    f"Expected exactly one '{binary_name}' in {bundle.name}, "
                    f"found {len(matches)}"
                )
            member = matches[0]
            source = tar.extractfile(member)
            if source is None:
                raise DownloadError(f"Cannot read '{member.name}' from {bundle.name}")

            out_dir = dest_dir / "extracted"
            out_dir.mkdir(exist_ok=True)
            target = out_dir / binary_name
            with source, open(target, "wb") as out:
                shutil.copyfileobj(source, out, _CHUNK)
    except (tarfile.TarError, EOFError, OSError) as exc:
        raise DownloadError(f"Cannot unpack {bundle.name}: {exc}") from exc

    if target.stat().st_size == 0:
        raise DownloadError(f"'{binary_name}' in {bundle.name} is empty")

    logger.debug("Extracted %s from %s", member.name, bundle.name)
    return target


def fetch_artifact(
    artifact: ReleaseArtifact,
    workdir: Path,
    *,
    binary_name: str,
    timeout: float = 120.0,
) -> ReleaseArtifact:
    """Download ``artifact`` and return it with ``local_temp_path`` set.

    ``local_temp_path`` points at the ready-to-install executable inside
    ``workdir``: the download itself for a raw binary, or the extracted
    member for a tar.gz bundle (whose archive file is removed).
    """
    downloaded = download_file(
        artifact.download_url,
        workdir,
        timeout=timeout,
        suffix=f"-{artifact.asset_name}" if artifact.asset_name else "",
    )

    if _is_gzip(downloaded):
        try:
            binary = extract_binary(downloaded, binary_name, workdir)
        finally:
            downloaded.unlink(missing_ok=True)
    else:
        binary = downloaded

    if artifact.expected_non_empty and binary.stat().st_size == 0:
        binary.unlink(missing_ok=True)
        raise DownloadError(f"Artifact {artifact.asset_name or artifact.download_url} is empty")

    return artifact.model_copy(update={"local_temp_path": binary})
