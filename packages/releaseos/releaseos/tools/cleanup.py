"""CleanupTool — remove generated artifacts from the working tree."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import FilesystemError
from buildos.runtime.workspace import Workspace
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import CleanInput, CleanOutput

logger = logging.getLogger(__name__)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


class CleanupTool(BaseTool):
    """Delete everything matching the configured patterns under ``root``.

    ``patterns`` are matched at the top level of the tree;
    ``recursive_patterns`` are matched at any depth. Paths that do not
    exist are skipped, so cleaning twice is harmless.
    """

    @property
    def name(self) -> str:
        return "cleanup"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return CleanInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return CleanOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.DESTRUCTIVE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, CleanInput)

        workspace = Workspace.at(data.root, include_hidden=True)
        root = workspace.root
        candidates: list[Path] = []
        for pattern in data.patterns:
            candidates.extend(sorted(root.glob(pattern)))
        for pattern in data.recursive_patterns:
            candidates.extend(sorted(root.rglob(pattern)))

        removed: list[str] = []
        for path in candidates:
            # Containment is checked on the link itself, never its target.
            target = workspace.resolve_path(path.relative_to(root), follow_symlinks=False)
            if not (target.exists() or target.is_symlink()):
                continue
            try:
                _remove(target)
            except OSError as exc:
                raise FilesystemError(f"Cannot remove {target}: {exc}") from exc
            logger.debug("removed %s", target)
            removed.append(str(target.relative_to(root)))

        logger.info("removed %d path(s) from %s", len(removed), root)
        return CleanOutput(removed=removed)
