"""
L4 Execution — Service account creation.

Creates the dedicated system group and user a service runs as, with
the family's native tools.  Idempotent but best-effort: the lookup and
the create are two steps, so two installers racing on the same account
can both decide to create it.  The loser's command fails and that
failure is reported like any other.
"""

from __future__ import annotations

import grp
import logging
import pwd

from release_installer.core.errors import InstallationError
from release_installer.core.models.platform import OsFamily
from release_installer.core.services.artifact_install.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)

NOLOGIN_SHELL = "/bin/false"

# family → (create-group argv, create-user argv); {user} / {group} filled in.
_ACCOUNT_COMMANDS: dict[OsFamily, tuple[list[str], list[str]]] = {
    OsFamily.DEBIAN: (
        ["groupadd", "--system", "{group}"],
        [
            "useradd", "--system", "--no-create-home",
            "--shell", NOLOGIN_SHELL, "--gid", "{group}", "{user}",
        ],
    ),
    OsFamily.ALPINE: (
        ["addgroup", "-S", "{group}"],
        ["adduser", "-D", "-S", "-H", "-s", NOLOGIN_SHELL, "-G", "{group}", "{user}"],
    ),
}


def _user_exists(user: str) -> bool:
    try:
        pwd.getpwnam(user)
    except KeyError:
        return False
    return True


def _group_exists(group: str) -> bool:
    try:
        grp.getgrnam(group)
    except KeyError:
        return False
    return True


def _fill(argv: list[str], *, user: str, group: str) -> list[str]:
    return [a.replace("{user}", user).replace("{group}", group) for a in argv]


def ensure_service_account(user: str, group: str, os_family: OsFamily) -> bool:
    """Create ``group`` and ``user`` if they do not exist yet.

    Returns:
        True if anything was created, False if both already existed.

    Raises:
        InstallationError: A create command failed.
    """
    group_cmd, user_cmd = _ACCOUNT_COMMANDS[os_family]
    created = False

    if not _group_exists(group):
        logger.info("Creating system group '%s'", group)
        result = _run_subprocess(_fill(group_cmd, user=user, group=group), timeout=30)
        if not result["ok"]:
            raise InstallationError(
                f"Cannot create group '{group}': "
                f"{result.get('stderr') or result['error']}".strip()
            )
        created = True

    if _user_exists(user):
        logger.debug("System user '%s' already exists", user)
        return created

    logger.info("Creating system user '%s'", user)
    result = _run_subprocess(_fill(user_cmd, user=user, group=group), timeout=30)
    if not result["ok"]:
        raise InstallationError(
            f"Cannot create user '{user}': "
            f"{result.get('stderr') or result['error']}".strip()
        )
    return True
