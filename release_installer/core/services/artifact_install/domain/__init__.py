"""
L1 Domain — pure functions: no I/O, no subprocess, no network.

Everything here is deterministic for the same input, which is what
makes the rendered service descriptors testable byte for byte.
"""

from release_installer.core.services.artifact_install.domain.service_spec import (  # noqa: F401
    build_service_spec,
    expand_placeholders,
    profile_variables,
    verification_url,
)
from release_installer.core.services.artifact_install.domain.unit_templates import (  # noqa: F401
    render_openrc_conf,
    render_openrc_script,
    render_systemd_unit,
)
