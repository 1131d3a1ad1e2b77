"""
L5 Orchestration — The installation pipeline.

    probe → resolve → fetch → install → unit → service → verify

Stages run strictly in order and the first failure ends the run.  The
pipeline's only output is an ``InstallationResult``: typed installer
errors raised by any stage are captured there, with the stage they
happened in.  ``KeyboardInterrupt`` is the one thing that escapes, after
the scoped workdir has been cleaned up.

When the target binary is already present, resolve and fetch are
skipped entirely; account, config files, descriptor, service start and
verification still run, so a re-run repairs everything around the
binary without replacing it.

Nothing is rolled back.  A ``ServiceStartError`` leaves the binary,
account and descriptor in place; the result carries a warning saying so.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from release_installer.core.config.loader import InstallerConfig
from release_installer.core.errors import DownloadError, InstallerError, UnsupportedPlatform
from release_installer.core.models.platform import PlatformDescriptor
from release_installer.core.models.profile import ArtifactProfile
from release_installer.core.models.result import InstallationResult, InstallStage
from release_installer.core.services.artifact_install.detection.platform_probe import (
    probe_platform,
)
from release_installer.core.services.artifact_install.domain.service_spec import (
    build_service_spec,
    expand_placeholders,
    profile_variables,
    verification_url,
)
from release_installer.core.services.artifact_install.execution.accounts import (
    ensure_service_account,
)
from release_installer.core.services.artifact_install.execution.fetcher import (
    fetch_artifact,
)
from release_installer.core.services.artifact_install.execution.installer import (
    install_binary,
    write_config_file,
)
from release_installer.core.services.artifact_install.execution.service_controller import (
    ServiceController,
)
from release_installer.core.services.artifact_install.execution.unit_writer import (
    render_descriptors,
    write_service_descriptor,
)
from release_installer.core.services.artifact_install.execution.verifier import (
    verify_binary,
    verify_endpoint,
)
from release_installer.core.services.artifact_install.execution.workspace import (
    scoped_workdir,
    termination_guard,
)
from release_installer.core.services.artifact_install.resolver.release_resolver import (
    resolve_release,
)

logger = logging.getLogger(__name__)

NO_ROLLBACK_WARNING = (
    "Installed files were left in place: the binary, service account and "
    "unit descriptor are not rolled back when the service fails to start."
)


def _probe(
    profile: ArtifactProfile,
    config: InstallerConfig,
    platform: PlatformDescriptor | None,
) -> PlatformDescriptor:
    descriptor = platform or probe_platform(
        os_release_path=Path(config.paths.os_release),
        service_manager=config.service_manager,
    )
    if descriptor.arch not in profile.supported_arches:
        supported = ", ".join(a.value for a in profile.supported_arches)
        raise UnsupportedPlatform(
            f"{profile.name} is not published for {descriptor.arch} (supported: {supported})"
        )
    return descriptor


def _resolve(profile: ArtifactProfile, config: InstallerConfig, descriptor, release_tag):
    idx = config.release_index
    return resolve_release(
        profile,
        descriptor,
        api_base=idx.api_base,
        download_base=idx.download_base,
        timeout=idx.timeout,
        token_env=idx.token_env,
        pinned_tag=release_tag,
    )


def _write_config_files(profile: ArtifactProfile, config: InstallerConfig) -> None:
    variables = profile_variables(profile, config_dir=config.paths.config_dir)
    for cfg in profile.config_files:
        write_config_file(
            cfg,
            Path(config.paths.config_dir),
            owner=profile.owner(),
            relative_path=expand_placeholders(cfg.path, variables),
        )


def run_pipeline(
    profile: ArtifactProfile,
    config: InstallerConfig,
    *,
    platform: PlatformDescriptor | None = None,
    release_tag: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> InstallationResult:
    """Install ``profile`` end to end.

    Args:
        profile: What to install.
        config: Paths, endpoints and timeouts.
        platform: Skip probing and use this descriptor.
        release_tag: Install this tag instead of the latest release.
        sleep: Injectable sleep used by verification polling.

    Returns:
        The run's ``InstallationResult`` (never raises ``InstallerError``).
    """
    result = InstallationResult(profile=profile.name)
    paths = config.paths
    stage = InstallStage.PLATFORM

    try:
        descriptor = _probe(profile, config, platform)
        result.platform = {
            "os_family": descriptor.os_family.value,
            "arch": descriptor.arch.value,
            "service_manager": descriptor.service_manager.value,
        }

        target = Path(paths.bin_dir) / profile.binary_name
        result.binary_path = str(target)
        owner = profile.owner()

        if target.exists():
            stage = InstallStage.INSTALL
            logger.info("%s already installed at %s — skipping download", profile.name, target)
            result.already_installed = True
            if owner:
                ensure_service_account(owner[0], owner[1], descriptor.os_family)
        else:
            stage = InstallStage.RESOLVE
            artifact = _resolve(profile, config, descriptor, release_tag)
            result.installed_version = artifact.version

            tmp_parent = Path(paths.tmp_dir) if paths.tmp_dir else None
            with termination_guard(), scoped_workdir(tmp_parent, prefix=f"{profile.name}-") as workdir:
                stage = InstallStage.FETCH
                fetched = fetch_artifact(
                    artifact,
                    workdir,
                    binary_name=profile.binary_name,
                    timeout=config.download.timeout,
                )
                if fetched.local_temp_path is None:
                    raise DownloadError(f"No local file for {fetched.download_url}")

                stage = InstallStage.INSTALL
                if owner:
                    ensure_service_account(owner[0], owner[1], descriptor.os_family)
                placement = install_binary(fetched.local_temp_path, target, owner=owner)
                result.already_installed = placement.already_installed

        stage = InstallStage.INSTALL
        _write_config_files(profile, config)

        if profile.service is None:
            stage = InstallStage.VERIFY
            verify_binary(target, profile.verify_args)
            result.success = True
            return result

        spec = build_service_spec(
            profile,
            exec_path=str(target),
            config_dir=paths.config_dir,
            log_dir=paths.log_dir,
            run_dir=paths.run_dir,
        )

        stage = InstallStage.UNIT
        written = write_service_descriptor(spec, descriptor.service_manager, paths.model_dump())
        result.unit_path = str(written.path)

        stage = InstallStage.SERVICE
        controller = ServiceController(spec.name, descriptor.service_manager)
        if written.changed:
            controller.reload()
        controller.enable()
        controller.restart(descriptor=written.path, previously_existed=written.previously_existed)
        status = controller.status()
        result.service_active = status["active"]
        if not status["active"]:
            logger.warning("%s reports state '%s' after start", spec.name, status["state"])

        stage = InstallStage.VERIFY
        url = verification_url(profile)
        result.verification_endpoint = url
        v = config.verification
        verify_endpoint(
            url,
            profile.service.health_marker,
            max_wait=v.max_wait,
            interval=v.interval,
            timeout=v.timeout,
            initial_delay=v.initial_delay,
            sleep=sleep,
        )
        result.success = True

    except InstallerError as exc:
        result.success = False
        result.failure_stage = exc.stage or stage
        result.error = str(exc)
        result.error_type = exc.category
        result.exit_code = exc.exit_code
        if result.failure_stage is InstallStage.VERIFY:
            logger.warning("[%s] %s: %s", result.failure_stage, exc.category, exc)
        else:
            logger.error("[%s] %s: %s", result.failure_stage, exc.category, exc)
        if result.failure_stage in (InstallStage.SERVICE, InstallStage.UNIT):
            result.warnings.append(NO_ROLLBACK_WARNING)

    return result


def plan_installation(
    profile: ArtifactProfile,
    config: InstallerConfig,
    *,
    platform: PlatformDescriptor | None = None,
    release_tag: str | None = None,
) -> dict[str, Any]:
    """Work out what ``run_pipeline`` would do, without side effects.

    Probes the platform and, unless the binary is already present,
    queries the release index.  Descriptors are rendered, not written.

    Raises:
        InstallerError: Probe or resolution failed.
    """
    paths = config.paths
    descriptor = _probe(profile, config, platform)
    target = Path(paths.bin_dir) / profile.binary_name

    plan: dict[str, Any] = {
        "profile": profile.name,
        "platform": {
            "os_family": descriptor.os_family.value,
            "arch": descriptor.arch.value,
            "service_manager": descriptor.service_manager.value,
        },
        "binary_path": str(target),
        "already_installed": target.exists(),
        "version": None,
        "download_url": None,
        "account": profile.account,
        "descriptors": [],
        "verification_endpoint": verification_url(profile),
    }

    if not plan["already_installed"]:
        artifact = _resolve(profile, config, descriptor, release_tag)
        plan["version"] = artifact.version
        plan["download_url"] = artifact.download_url

    if profile.service is not None:
        spec = build_service_spec(
            profile,
            exec_path=str(target),
            config_dir=paths.config_dir,
            log_dir=paths.log_dir,
            run_dir=paths.run_dir,
        )
        plan["descriptors"] = [
            {"path": str(path), "mode": f"{mode:o}", "content": text}
            for path, text, mode in render_descriptors(
                spec, descriptor.service_manager, paths.model_dump(),
            )
        ]

    return plan
