"""
L1 Domain — Download helpers (pure).

Asset-kind sniffing, bundle member selection and size formatting.
No I/O, no subprocess.
"""

from __future__ import annotations

import tarfile
from collections.abc import Iterable
from pathlib import PurePosixPath

GZIP_MAGIC = b"\x1f\x8b"

_SIZE_UNITS = ("B", "KiB", "MiB", "GiB")


def is_gzip_header(head: bytes) -> bool:
    """True when the first bytes of a download are a gzip stream."""
    return head[:2] == GZIP_MAGIC


def binary_members(members: Iterable[tarfile.TarInfo], binary_name: str) -> list[tarfile.TarInfo]:
    """Regular files in a bundle whose base name is ``binary_name``.

    Directories, links and devices never match, whatever their name.
    """
    return [
        m for m in members
        if m.isfile() and PurePosixPath(m.name).name == binary_name
    ]


def human_size(size: int) -> str:
    """Format a byte count for log lines, e.g. ``10.4 MiB``."""
    value = float(size)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"
