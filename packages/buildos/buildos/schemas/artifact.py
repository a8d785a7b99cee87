"""Artifact metadata schema."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from buildos.core.identifiers import ArtifactId, TaskId, generate_artifact_id
from buildos.integrity.hashing import hash_file


class ArtifactMeta(BaseModel):
    """Metadata for a produced file artifact."""

    id: ArtifactId
    path: str = Field(description="Path of the artifact relative to the source tree root")
    sha256: str = Field(description="SHA-256 hash of the artifact content")
    size: int = Field(ge=0, description="Size of the artifact in bytes")
    produced_by_task: str = Field(description="Name of the task that produced the artifact")
    task_id: TaskId | None = None
    mime_type: str = "application/octet-stream"

    @classmethod
    def from_file(
        cls,
        path: Path,
        *,
        root: Path,
        produced_by_task: str,
        task_id: TaskId | None = None,
        mime_type: str = "application/octet-stream",
    ) -> ArtifactMeta:
        """Describe an existing file, hashing its content."""
        return cls(
            id=generate_artifact_id(),
            path=str(path.relative_to(root)) if path.is_relative_to(root) else str(path),
            sha256=hash_file(path),
            size=path.stat().st_size,
            produced_by_task=produced_by_task,
            task_id=task_id,
            mime_type=mime_type,
        )
