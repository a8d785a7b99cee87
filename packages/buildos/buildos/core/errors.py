"""Core error hierarchy for BuildOS."""

from __future__ import annotations


class BuildOSError(Exception):
    """Base exception for all BuildOS errors."""


class ToolValidationError(BuildOSError):
    """Raised when tool input or output fails schema validation."""


class TaskExecutionError(BuildOSError):
    """Raised when a task fails during execution."""


class MissingInputError(BuildOSError):
    """Raised when a required source file or manifest entry is absent before a stage starts."""


class FilesystemError(BuildOSError):
    """Raised when a copy, link, mkdir or permission change fails."""


class ExternalToolError(BuildOSError):
    """Raised when a delegated process exits non-zero.

    Carries the command line and the exit status so the caller can
    propagate the sub-process status as its own.
    """

    def __init__(self, message: str, *, command: list[str] | None = None, returncode: int = 1) -> None:
        super().__init__(message)
        self.command: list[str] = list(command or [])
        self.returncode = returncode


class ArtifactValidationError(ExternalToolError):
    """Raised when the lint pass reports a non-excluded violation."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int = 1,
        report: str = "",
    ) -> None:
        super().__init__(message, command=command, returncode=returncode)
        self.report = report


class InconsistentArtifactError(BuildOSError):
    """Raised when a tool reports success but its declared output is absent."""


class ConfigurationError(BuildOSError):
    """Raised when an explicitly requested settings file is missing or invalid."""
