"""Workspace — scoped directory abstraction for a source tree or install root."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

from pydantic import BaseModel, Field


class WorkspaceConfig(BaseModel):
    """Configuration for a workspace directory."""

    root: str = Field(description="Root directory path for the workspace")
    exclude_patterns: list[str] = Field(
        default_factory=list,
        description="Glob patterns (relative to root) of entries that are not inputs",
    )
    include_hidden: bool = Field(
        default=False,
        description="If False, top-level entries starting with '.' are not listed",
    )


class Workspace:
    """Scoped workspace rooted at one directory.

    Enforces path containment within the root directory and knows which
    top-level entries are generated outputs rather than inputs.
    """

    def __init__(self, config: WorkspaceConfig) -> None:
        self._config = config
        self._root = Path(config.root).resolve()

    @classmethod
    def at(cls, root: str | Path, **kwargs: object) -> Workspace:
        return cls(WorkspaceConfig(root=str(root), **kwargs))

    @property
    def root(self) -> Path:
        """Resolved root directory path."""
        return self._root

    @property
    def config(self) -> WorkspaceConfig:
        return self._config

    def resolve_path(self, path: str | Path, *, follow_symlinks: bool = True) -> Path:
        """Resolve a path relative to the workspace root.

        Absolute paths are re-rooted under the workspace root, so
        ``/etc/hosts`` in a workspace at ``/out`` becomes ``/out/etc/hosts``.
        With ``follow_symlinks=False`` the final path is normalized
        lexically, which lets callers replace an existing symlink whose
        target lies elsewhere.

        Raises ValueError if the path escapes the workspace root.
        """
        relative = str(path).lstrip("/") or "."
        lexical = Path(os.path.normpath(self._root / relative))
        resolved = lexical.resolve() if follow_symlinks else lexical
        try:
            lexical.relative_to(self._root)
            if follow_symlinks:
                resolved.relative_to(self._root)
        except ValueError:
            raise ValueError(
                f"Path '{path}' resolves to '{resolved}' which is outside "
                f"workspace root '{self._root}'"
            ) from None
        return resolved

    def is_excluded(self, relative: str) -> bool:
        """Check if a root-relative path matches an exclude pattern."""
        return any(
            fnmatch.fnmatch(relative, pattern)
            for pattern in self._config.exclude_patterns
        )

    def entries(self) -> list[Path]:
        """Return the top-level input entries of the workspace, sorted by name."""
        result: list[Path] = []
        for entry in sorted(self._root.iterdir()):
            if not self._config.include_hidden and entry.name.startswith("."):
                continue
            if self.is_excluded(entry.name):
                continue
            result.append(entry)
        return result

    def expand(self, patterns: list[str]) -> list[Path]:
        """Expand root-relative paths and glob patterns, keeping their order.

        Plain paths are returned whether or not they exist; glob patterns
        contribute only their existing matches.
        """
        result: list[Path] = []
        for pattern in patterns:
            if any(ch in pattern for ch in "*?["):
                result.extend(sorted(self._root.glob(pattern)))
            else:
                result.append(self.resolve_path(pattern, follow_symlinks=False))
        return result
