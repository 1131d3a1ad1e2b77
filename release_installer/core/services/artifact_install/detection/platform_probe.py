"""
L3 Detection — Platform probe.

Read-only: parses os-release and the machine type into a
``PlatformDescriptor``.  There is no best-guess fallback: anything
outside the recognised set is ``UnsupportedPlatform``.
"""

from __future__ import annotations

import logging
import platform
import re
from pathlib import Path

from release_installer.core.errors import UnsupportedPlatform
from release_installer.core.models.platform import (
    FAMILY_SERVICE_MANAGER,
    ArchToken,
    OsFamily,
    PlatformDescriptor,
    ServiceManager,
)

logger = logging.getLogger(__name__)

DEFAULT_OS_RELEASE = Path("/etc/os-release")

# os-release keys inspected for a family marker, most specific first.
_FAMILY_KEYS = ("ID", "ID_LIKE", "NAME")

# (marker, family) — checked in order against each key.
_FAMILY_MARKERS: tuple[tuple[str, OsFamily], ...] = (
    ("alpine", OsFamily.ALPINE),
    ("debian", OsFamily.DEBIAN),
    ("ubuntu", OsFamily.DEBIAN),
)

_EXACT_ARCH: dict[str, ArchToken] = {
    "x86_64": ArchToken.AMD64,
    "amd64": ArchToken.AMD64,
    "aarch64": ArchToken.ARM64,
    "arm64": ArchToken.ARM64,
}

_ARMV7_RE = re.compile(r"^armv7")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines into a dict.

    Quotes around values are removed; comments and blank lines skipped.
    """
    fields: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        fields[key.strip()] = value
    return fields


def detect_os_family(os_release: dict[str, str]) -> OsFamily:
    """Map parsed os-release fields to an ``OsFamily``.

    Raises:
        UnsupportedPlatform: No recognised marker in ID, ID_LIKE or NAME.
    """
    for key in _FAMILY_KEYS:
        value = os_release.get(key, "").lower()
        if not value:
            continue
        for marker, family in _FAMILY_MARKERS:
            if marker in value:
                return family

    described = os_release.get("PRETTY_NAME") or os_release.get("NAME") or "unknown"
    raise UnsupportedPlatform(f"Unsupported operating system: {described}")


def detect_arch(machine: str) -> ArchToken:
    """Map a ``uname -m`` style machine string to an ``ArchToken``.

    Raises:
        UnsupportedPlatform: Machine type is not amd64, arm64 or armv7.
    """
    key = machine.strip().lower()
    token = _EXACT_ARCH.get(key)
    if token is not None:
        return token
    if _ARMV7_RE.match(key):
        return ArchToken.ARMV7
    raise UnsupportedPlatform(f"Unsupported architecture: {machine or 'unknown'}")


def probe_platform(
    *,
    os_release_path: Path = DEFAULT_OS_RELEASE,
    os_release_text: str | None = None,
    machine: str | None = None,
    service_manager: ServiceManager | None = None,
) -> PlatformDescriptor:
    """Detect the host platform.

    Args:
        os_release_path: Where to read os-release from.
        os_release_text: Use this text instead of reading the file.
        machine: Use this machine type instead of ``platform.machine()``.
        service_manager: Override the family's default service manager.

    Returns:
        The immutable descriptor for this run.

    Raises:
        UnsupportedPlatform: On any unrecognised or unreadable input.
    """
    if os_release_text is None:
        try:
            os_release_text = os_release_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise UnsupportedPlatform(
                f"Cannot detect operating system: {os_release_path}: {exc.strerror or exc}"
            ) from exc

    family = detect_os_family(parse_os_release(os_release_text))
    arch = detect_arch(machine if machine is not None else platform.machine())
    manager = service_manager or FAMILY_SERVICE_MANAGER[family]

    descriptor = PlatformDescriptor(os_family=family, arch=arch, service_manager=manager)
    logger.info("Detected platform: %s", descriptor.label())
    return descriptor
