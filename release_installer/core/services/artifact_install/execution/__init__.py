"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: downloads, file placement,
account creation, service descriptors, service manager calls.
"""

from release_installer.core.services.artifact_install.execution.accounts import (  # noqa: F401
    ensure_service_account,
)
from release_installer.core.services.artifact_install.execution.fetcher import (  # noqa: F401
    download_file,
    extract_binary,
    fetch_artifact,
)
from release_installer.core.services.artifact_install.execution.installer import (  # noqa: F401
    PlacementResult,
    install_binary,
    write_config_file,
)
from release_installer.core.services.artifact_install.execution.service_controller import (  # noqa: F401
    MANAGER_COMMANDS,
    ServiceController,
)
from release_installer.core.services.artifact_install.execution.subprocess_runner import (  # noqa: F401
    _run_subprocess,
)
from release_installer.core.services.artifact_install.execution.unit_writer import (  # noqa: F401
    WrittenDescriptor,
    descriptor_path,
    render_descriptors,
    write_service_descriptor,
)
from release_installer.core.services.artifact_install.execution.verifier import (  # noqa: F401
    verify_binary,
    verify_endpoint,
)
from release_installer.core.services.artifact_install.execution.workspace import (  # noqa: F401
    scoped_workdir,
    termination_guard,
)
