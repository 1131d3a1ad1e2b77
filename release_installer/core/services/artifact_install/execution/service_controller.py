"""
L4 Execution — Service manager control.

enable / start / restart / status through systemd or OpenRC.  The verbs
are the same for every manager; the argv behind each verb comes from
``MANAGER_COMMANDS``.

Failure policy:
    enable          → logged as a warning, never fatal
    start, restart  → ``ServiceStartError``; files already placed stay
    status          → reported, never raises
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from release_installer.core.errors import ServiceStartError
from release_installer.core.models.platform import ServiceManager
from release_installer.core.services.artifact_install.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManagerCommands:
    """argv templates per verb; ``{name}`` is the service name."""

    enable: tuple[str, ...]
    start: tuple[str, ...]
    restart: tuple[str, ...]
    status: tuple[str, ...]
    reload: tuple[str, ...] | None = None


MANAGER_COMMANDS: dict[ServiceManager, ManagerCommands] = {
    ServiceManager.SYSTEMD: ManagerCommands(
        enable=("systemctl", "enable", "{name}"),
        start=("systemctl", "start", "{name}"),
        restart=("systemctl", "restart", "{name}"),
        status=("systemctl", "is-active", "{name}"),
        reload=("systemctl", "daemon-reload"),
    ),
    ServiceManager.OPENRC: ManagerCommands(
        enable=("rc-update", "add", "{name}", "default"),
        start=("rc-service", "{name}", "start"),
        restart=("rc-service", "{name}", "restart"),
        status=("rc-service", "{name}", "status"),
    ),
}

_OPENRC_STATUS_RE = re.compile(r"status:\s*(\w+)")


class ServiceController:
    """Drive one service through one service manager."""

    def __init__(self, name: str, manager: ServiceManager, *, timeout: int = 60):
        self.name = name
        self.manager = manager
        self.timeout = timeout
        self._commands = MANAGER_COMMANDS[manager]

    def __repr__(self) -> str:
        return f"<ServiceController {self.name!r} via {self.manager}>"

    def _argv(self, template: tuple[str, ...]) -> list[str]:
        return [part.replace("{name}", self.name) for part in template]

    def _run(self, template: tuple[str, ...]) -> dict[str, Any]:
        return _run_subprocess(self._argv(template), timeout=self.timeout)

    def reload(self) -> dict[str, Any]:
        """Make the manager re-read descriptors (systemd only).

        A failed reload shows up as a failed start right after, so it is
        only logged here.
        """
        if self._commands.reload is None:
            return {"ok": True, "skipped": True}
        result = self._run(self._commands.reload)
        if not result["ok"]:
            logger.warning("%s reload failed: %s", self.manager, result["error"])
        return result

    def enable(self) -> dict[str, Any]:
        """Enable the service at boot.  Failure is logged and ignored."""
        result = self._run(self._commands.enable)
        if result["ok"]:
            logger.info("Enabled %s", self.name)
        else:
            logger.warning(
                "Could not enable %s (continuing): %s",
                self.name, result.get("stderr") or result["error"],
            )
        return result

    def start(self) -> dict[str, Any]:
        """Start the service.

        Raises:
            ServiceStartError: The manager reported failure.
        """
        return self._must(self._commands.start, "start")

    def restart(self, *, descriptor: Path, previously_existed: bool) -> dict[str, Any]:
        """Restart the service, or start it if it had no descriptor before.

        Args:
            descriptor: The service's primary descriptor path.
            previously_existed: Whether that descriptor existed before this run.

        Raises:
            ServiceStartError: The descriptor is missing, or the manager
                reported failure.
        """
        if not descriptor.is_file():
            raise ServiceStartError(
                f"Refusing to restart {self.name}: no descriptor at {descriptor}"
            )
        if not previously_existed:
            logger.info("%s is new — starting instead of restarting", self.name)
            return self.start()
        return self._must(self._commands.restart, "restart")

    def status(self) -> dict[str, Any]:
        """Query the service state.

        Returns::

            {"service": "node_exporter", "manager": "systemd",
             "active": True, "state": "active", "exit_code": 0, "output": "..."}
        """
        result = self._run(self._commands.status)
        output = (result.get("stdout") or result.get("stderr") or "").strip()

        if self.manager is ServiceManager.SYSTEMD:
            state = output.splitlines()[-1].strip() if output else "unknown"
        else:
            match = _OPENRC_STATUS_RE.search(output)
            state = match.group(1) if match else ("started" if result["ok"] else "unknown")

        return {
            "service": self.name,
            "manager": self.manager.value,
            "active": bool(result["ok"]),
            "state": state,
            "exit_code": result.get("returncode"),
            "output": output,
        }

    def _must(self, template: tuple[str, ...], verb: str) -> dict[str, Any]:
        result = self._run(template)
        if not result["ok"]:
            detail = (result.get("stderr") or "").strip() or result["error"]
            raise ServiceStartError(f"Failed to {verb} {self.name}: {detail}")
        logger.info("%s: %s ok", self.name, verb)
        return result
