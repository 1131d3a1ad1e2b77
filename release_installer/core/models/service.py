"""
Service spec — everything a unit descriptor is rendered from.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RestartPolicy(StrEnum):
    """Whether the service manager restarts the process when it exits."""

    ALWAYS = "always"
    NONE = "none"


class ServiceSpec(BaseModel):
    """Typed input of the unit renderers.

    Two equal specs always render to byte-identical descriptors.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    exec_path: str
    args: tuple[str, ...] = Field(default_factory=tuple)
    user: str = "root"
    group: str = "root"
    listen_address: str = ""
    restart_policy: RestartPolicy = RestartPolicy.ALWAYS
    pid_file: str = ""
    log_file: str = ""

    @property
    def command_line(self) -> list[str]:
        """Executable followed by its arguments."""
        return [self.exec_path, *self.args]
