"""
L5 Orchestration — the stage-by-stage installation pipeline.
"""

from release_installer.core.services.artifact_install.orchestration.pipeline import (  # noqa: F401
    plan_installation,
    run_pipeline,
)
