"""BuildOS core — identifiers, errors, and foundational types."""

from buildos.core.errors import (
    ArtifactValidationError,
    BuildOSError,
    ConfigurationError,
    ExternalToolError,
    FilesystemError,
    InconsistentArtifactError,
    MissingInputError,
    TaskExecutionError,
    ToolValidationError,
)
from buildos.core.identifiers import (
    ArtifactId,
    RunId,
    TaskId,
    generate_artifact_id,
    generate_id,
    generate_run_id,
    generate_task_id,
)

__all__ = [
    "ArtifactId",
    "ArtifactValidationError",
    "BuildOSError",
    "ConfigurationError",
    "ExternalToolError",
    "FilesystemError",
    "InconsistentArtifactError",
    "MissingInputError",
    "RunId",
    "TaskExecutionError",
    "TaskId",
    "ToolValidationError",
    "generate_artifact_id",
    "generate_id",
    "generate_run_id",
    "generate_task_id",
]
