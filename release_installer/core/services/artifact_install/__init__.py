"""
Artifact installation service — package re-exports.

    from release_installer.core.services.artifact_install import run_pipeline

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → resolver → detection → execution →
orchestration).
"""

# ── L0: Data ──
from release_installer.core.services.artifact_install.data.profiles import (  # noqa: F401
    BUILTIN_PROFILES,
)

# ── L1: Domain ──
from release_installer.core.services.artifact_install.domain.service_spec import (  # noqa: F401
    build_service_spec,
    verification_url,
)
from release_installer.core.services.artifact_install.domain.unit_templates import (  # noqa: F401
    render_openrc_conf,
    render_openrc_script,
    render_systemd_unit,
)

# ── L2: Resolver ──
from release_installer.core.services.artifact_install.resolver.release_resolver import (  # noqa: F401
    fetch_latest_tag,
    resolve_release,
)

# ── L3: Detection ──
from release_installer.core.services.artifact_install.detection.platform_probe import (  # noqa: F401
    probe_platform,
)

# ── L4: Execution ──
from release_installer.core.services.artifact_install.execution.fetcher import (  # noqa: F401
    fetch_artifact,
)
from release_installer.core.services.artifact_install.execution.installer import (  # noqa: F401
    install_binary,
)
from release_installer.core.services.artifact_install.execution.service_controller import (  # noqa: F401
    ServiceController,
)
from release_installer.core.services.artifact_install.execution.unit_writer import (  # noqa: F401
    write_service_descriptor,
)
from release_installer.core.services.artifact_install.execution.verifier import (  # noqa: F401
    verify_binary,
    verify_endpoint,
)

# ── L5: Orchestration ──
from release_installer.core.services.artifact_install.orchestration.pipeline import (  # noqa: F401
    plan_installation,
    run_pipeline,
)
