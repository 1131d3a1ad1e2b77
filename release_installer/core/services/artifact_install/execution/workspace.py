"""
L4 Execution — Scoped temp workspace and termination handling.

Everything downloaded or unpacked during a run lives in one temp
directory that is removed on every exit path: success, failure,
Ctrl-C, or SIGTERM.  A SIGTERM arriving while the directory is being
removed is held until removal finishes.
"""

from __future__ import annotations

import logging
import shutil
import signal
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from release_installer.core.errors import InstallInterrupted

logger = logging.getLogger(__name__)


@contextmanager
def scoped_workdir(
    parent: Path | None = None,
    prefix: str = "release-installer-",
) -> Iterator[Path]:
    """Create a private temp directory and remove it when the scope exits.

    Args:
        parent: Directory to create it in (default: system temp dir).
        prefix: Name prefix; a random suffix keeps concurrent runs apart.
    """
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    logger.debug("Created workdir %s", workdir)
    try:
        yield workdir
    finally:
        with sigterm_deferred():
            shutil.rmtree(workdir, ignore_errors=True)
        logger.debug("Removed workdir %s", workdir)


@contextmanager
def termination_guard() -> Iterator[None]:
    """Turn SIGTERM into ``InstallInterrupted`` for the duration of the scope.

    SIGINT already unwinds as ``KeyboardInterrupt``.  Raising on SIGTERM
    too means ``finally`` blocks (like the workdir cleanup) run before
    the process exits.  Signal handlers can only be set from the main
    thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _on_sigterm(signum: int, frame: object) -> None:
        raise InstallInterrupted("Installation interrupted by SIGTERM")

    previous = signal.signal(signal.SIGTERM, _on_sigterm)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@contextmanager
def sigterm_deferred() -> Iterator[None]:
    """Hold SIGTERM back until the scope ends, then deliver it once.

    Wraps cleanup so a termination request cannot cut it short; whatever
    handler was installed before (``termination_guard`` or the default)
    sees the signal afterwards.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    pending: list[int] = []

    def _hold(signum: int, frame: object) -> None:
        pending.append(signum)

    previous = signal.signal(signal.SIGTERM, _hold)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)
        if pending:
            logger.debug("Delivering SIGTERM held during cleanup")
            signal.raise_signal(signal.SIGTERM)
