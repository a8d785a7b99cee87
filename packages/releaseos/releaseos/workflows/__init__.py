"""ReleaseOS target graph."""

from releaseos.workflows.release import (
    TARGETS,
    artifact_path,
    build_release_workflow,
    create_registry,
    run_targets,
)

__all__ = [
    "TARGETS",
    "artifact_path",
    "build_release_workflow",
    "create_registry",
    "run_targets",
]
