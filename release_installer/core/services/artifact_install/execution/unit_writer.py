"""
L4 Execution — Service descriptor writer.

Renders the descriptor(s) for the platform's service manager and writes
them atomically at the manager's canonical path.  Which renderers run
and where their output goes is table-driven by ``ServiceManager``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from release_installer.core.errors import InstallationError
from release_installer.core.models.platform import ServiceManager
from release_installer.core.models.result import InstallStage
from release_installer.core.models.service import ServiceSpec
from release_installer.core.services.artifact_install.domain.unit_templates import (
    render_openrc_conf,
    render_openrc_script,
    render_systemd_unit,
)
from release_installer.core.services.artifact_install.execution.installer import (
    _atomic_write,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DescriptorTarget:
    """One file a service manager reads, and how to produce it."""

    dir_key: str                            # attribute of the paths config
    filename: Callable[[str], str]
    render: Callable[[ServiceSpec], str]
    mode: int = 0o644


# Primary descriptor first; its path is the one the controller checks.
DESCRIPTOR_TARGETS: dict[ServiceManager, tuple[DescriptorTarget, ...]] = {
    ServiceManager.SYSTEMD: (
        DescriptorTarget(
            dir_key="systemd_unit_dir",
            filename=lambda name: f"{name}.service",
            render=render_systemd_unit,
        ),
    ),
    ServiceManager.OPENRC: (
        DescriptorTarget(
            dir_key="openrc_init_dir",
            filename=lambda name: name,
            render=render_openrc_script,
            mode=0o755,
        ),
        DescriptorTarget(
            dir_key="openrc_conf_dir",
            filename=lambda name: name,
            render=render_openrc_conf,
        ),
    ),
}


@dataclass
class WrittenDescriptor:
    """Outcome of writing a service's descriptor files."""

    path: Path                              # primary descriptor
    previously_existed: bool
    changed: bool
    files: list[Path] = field(default_factory=list)


def descriptor_path(spec_name: str, manager: ServiceManager, dirs: dict[str, str]) -> Path:
    """Canonical path of the primary descriptor for ``spec_name``."""
    target = DESCRIPTOR_TARGETS[manager][0]
    return Path(dirs[target.dir_key]) / target.filename(spec_name)


def render_descriptors(
    spec: ServiceSpec,
    manager: ServiceManager,
    dirs: dict[str, str],
) -> list[tuple[Path, str, int]]:
    """Render every descriptor without writing: ``[(path, text, mode)]``."""
    return [
        (Path(dirs[t.dir_key]) / t.filename(spec.name), t.render(spec), t.mode)
        for t in DESCRIPTOR_TARGETS[manager]
    ]


def write_service_descriptor(
    spec: ServiceSpec,
    manager: ServiceManager,
    dirs: dict[str, str],
) -> WrittenDescriptor:
    """Write the descriptor files for ``spec``.

    Files whose content is already identical are left alone, so a re-run
    with the same spec touches nothing.

    Args:
        spec: Service to describe.
        manager: Service manager to write for.
        dirs: Directory settings (``PathsConfig.model_dump()``).

    Raises:
        InstallationError: A descriptor could not be written (stage ``unit``).
    """
    rendered = render_descriptors(spec, manager, dirs)
    primary = rendered[0][0]
    previously_existed = primary.exists()
    changed = False

    for path, text, mode in rendered:
        data = text.encode("utf-8")
        try:
            if path.is_file() and path.read_bytes() == data:
                logger.debug("%s unchanged", path)
                continue
            _atomic_write(path, content=data, mode=mode, owner=None, replace=True)
        except OSError as exc:
            raise InstallationError(
                f"Cannot write service descriptor {path}: {exc}",
                stage=InstallStage.UNIT,
            ) from exc
        changed = True
        logger.info("Wrote %s", path)

    return WrittenDescriptor(
        path=primary,
        previously_existed=previously_existed,
        changed=changed,
        files=[p for p, _, _ in rendered],
    )
