"""
L4 Execution — Binary placement and configuration files.

Moves a fetched executable to its final path without ever exposing a
partially written file: the bytes go to a temp name in the target
directory, get their mode and owner, and are then renamed into place.
An existing target is never overwritten.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from release_installer.core.errors import InstallationError
from release_installer.core.models.profile import ConfigFile

logger = logging.getLogger(__name__)

BINARY_MODE = 0o755


@dataclass(frozen=True)
class PlacementResult:
    """What the installer did with the target path."""

    path: Path
    status: str          # "installed" | "already_installed"

    @property
    def already_installed(self) -> bool:
        return self.status == "already_installed"


def _atomic_write(
    target: Path,
    *,
    source: Path | None = None,
    content: bytes | None = None,
    mode: int,
    owner: tuple[str, str] | None,
    replace: bool,
) -> None:
    """Write to a temp file beside ``target``, then rename it into place.

    With ``replace=False`` the final step is a hard link, which fails if
    ``target`` appeared in the meantime instead of clobbering it.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as out:
            if source is not None:
                with open(source, "rb") as src:
                    shutil.copyfileobj(src, out)
            elif content is not None:
                out.write(content)
        os.chmod(tmp, mode)
        if owner is not None:
            shutil.chown(tmp, user=owner[0], group=owner[1])
        if replace:
            os.replace(tmp, target)
        else:
            os.link(tmp, target)
    finally:
        tmp.unlink(missing_ok=True)


def install_binary(
    source: Path,
    target: Path,
    *,
    owner: tuple[str, str] | None = None,
) -> PlacementResult:
    """Place ``source`` at ``target`` with mode 0755 and the given owner.

    Args:
        source: Fetched executable (inside the run's workdir).
        target: Final path, e.g. ``/usr/local/bin/node_exporter``.
        owner: ``(user, group)``; None keeps the current (root) owner.

    Returns:
        ``already_installed`` when ``target`` exists (it is left untouched),
        ``installed`` otherwise.

    Raises:
        InstallationError: Source missing/empty, or the write failed.
    """
    if target.exists():
        logger.info("%s already exists — leaving it untouched", target)
        return PlacementResult(path=target, status="already_installed")

    try:
        size = source.stat().st_size
    except OSError as exc:
        raise InstallationError(f"Fetched artifact missing: {source}") from exc
    if size == 0:
        raise InstallationError(f"Fetched artifact is empty: {source}")

    try:
        _atomic_write(target, source=source, mode=BINARY_MODE, owner=owner, replace=False)
    except FileExistsError:
        # Another run placed it between our check and our link.
        logger.info("%s appeared concurrently — leaving it untouched", target)
        return PlacementResult(path=target, status="already_installed")
    except (OSError, LookupError) as exc:
        raise InstallationError(f"Cannot install {target}: {exc}") from exc

    owner_label = f"{owner[0]}:{owner[1]}" if owner else "root"
    logger.info("Installed %s (mode %o, owner %s)", target, BINARY_MODE, owner_label)
    return PlacementResult(path=target, status="installed")


def write_config_file(
    config: ConfigFile,
    config_root: Path,
    *,
    owner: tuple[str, str] | None = None,
    relative_path: str | None = None,
) -> bool:
    """Write a profile configuration file if it does not exist yet.

    The parent directory is created and, like the file, handed to
    ``owner``.  An existing file is never modified.

    Returns:
        True if the file was written, False if it already existed.

    Raises:
        InstallationError: The directory or file could not be written.
    """
    target = config_root / (relative_path or config.path)
    if target.exists():
        logger.info("Config %s already exists — keeping it", target)
        return False

    try:
        parent_existed = target.parent.exists()
        target.parent.mkdir(parents=True, exist_ok=True)
        if owner is not None and not parent_existed:
            shutil.chown(target.parent, user=owner[0], group=owner[1])
        _atomic_write(
            target,
            content=config.content.encode("utf-8"),
            mode=config.mode,
            owner=owner,
            replace=False,
        )
    except FileExistsError:
        return False
    except (OSError, LookupError) as exc:
        raise InstallationError(f"Cannot write config {target}: {exc}") from exc

    logger.info("Wrote config %s", target)
    return True
