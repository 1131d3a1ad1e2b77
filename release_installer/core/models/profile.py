"""
Artifact profile model — the per-artifact parameterisation of an install.

A profile answers "which repository, which asset, which binary, and how is
it run".  Built-in profiles live in
``release_installer.core.services.artifact_install.data.profiles``; user
profiles from installer.yml are validated against the same models.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from release_installer.core.models.platform import ArchToken
from release_installer.core.models.service import RestartPolicy

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")

# Profile names become unit file names, account hints and argv words.
_PROFILE_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.@-]*")

# Placeholders the asset template may use.
ASSET_PLACEHOLDERS = frozenset({"version", "tag", "arch", "os_family", "name"})

# Placeholders service arguments and config file paths may use.
ARG_PLACEHOLDERS = frozenset({"listen_address", "config_dir", "name"})


def _check_placeholders(value: str, allowed: frozenset[str]) -> str:
    unknown = sorted(set(_PLACEHOLDER_RE.findall(value)) - allowed)
    if unknown:
        raise ValueError(
            f"unknown placeholder(s) {', '.join('{' + u + '}' for u in unknown)} "
            f"in {value!r}; allowed: {', '.join(sorted(allowed))}"
        )
    return value


class ServiceProfile(BaseModel):
    """How a profile's binary runs as a background service."""

    listen_address: str
    args: list[str] = Field(default_factory=list)
    restart_policy: RestartPolicy = RestartPolicy.ALWAYS
    description: str = ""
    health_path: str = "/metrics"
    health_marker: str = ""

    @field_validator("args")
    @classmethod
    def _args_placeholders(cls, v: list[str]) -> list[str]:
        for arg in v:
            _check_placeholders(arg, ARG_PLACEHOLDERS)
        return v

    @field_validator("health_path")
    @classmethod
    def _health_path_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"health_path must start with '/': {v!r}")
        return v


class ConfigFile(BaseModel):
    """A configuration file written next to the service (only if absent)."""

    path: str                       # relative to the configuration root
    content: str
    mode: int = 0o644

    @field_validator("path")
    @classmethod
    def _relative_path(cls, v: str) -> str:
        _check_placeholders(v, ARG_PLACEHOLDERS)
        if v.startswith("/") or ".." in v.split("/"):
            raise ValueError(f"config file path must be relative: {v!r}")
        return v


class ArtifactProfile(BaseModel):
    """One installable artifact."""

    name: str
    description: str = ""
    repo: str                       # owner/name on GitHub
    asset_template: str
    binary_name: str
    arch_aliases: dict[ArchToken, str] = Field(default_factory=dict)
    supported_arches: list[ArchToken] = Field(
        default_factory=lambda: list(ArchToken),
    )
    account: str | None = None      # service user and group
    service: ServiceProfile | None = None
    config_files: list[ConfigFile] = Field(default_factory=list)
    verify_args: list[str] = Field(default_factory=lambda: ["--version"])
    usage_hints: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _safe_name(cls, v: str) -> str:
        if not _PROFILE_NAME_RE.fullmatch(v):
            raise ValueError(
                f"name must start with a letter or digit and use only [A-Za-z0-9_.@-]: {v!r}"
            )
        return v

    @field_validator("repo")
    @classmethod
    def _repo_shape(cls, v: str) -> str:
        owner, sep, name = v.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"repo must be 'owner/name': {v!r}")
        return v

    @field_validator("asset_template")
    @classmethod
    def _asset_placeholders(cls, v: str) -> str:
        return _check_placeholders(v, ASSET_PLACEHOLDERS)

    @field_validator("binary_name")
    @classmethod
    def _plain_binary_name(cls, v: str) -> str:
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"binary_name must be a plain file name: {v!r}")
        return v

    def arch_name(self, arch: ArchToken) -> str:
        """Token used for ``{arch}`` in this profile's asset names."""
        return self.arch_aliases.get(arch, arch.value)

    def owner(self) -> tuple[str, str] | None:
        """``(user, group)`` owning the binary, or None for root."""
        if not self.account:
            return None
        return self.account, self.account
