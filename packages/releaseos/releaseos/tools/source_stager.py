"""SourceStagerTool — mirror the source tree into an isolated build directory."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import FilesystemError
from buildos.runtime.workspace import Workspace
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import StageInput, StageOutput

logger = logging.getLogger(__name__)

# Written last, so a build directory without it is an interrupted staging.
STAMP_NAME = ".staged"


class SourceStagerTool(BaseTool):
    """Copy the working tree into ``build_dir`` so packaging never writes to it.

    Any previous build directory is removed first: re-staging replaces
    stale files instead of merging with them.
    """

    @property
    def name(self) -> str:
        return "source_stager"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return StageInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return StageOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, StageInput)

        source = Workspace.at(data.source_root, exclude_patterns=[data.build_dir, *data.exclude])
        build_dir = source.resolve_path(data.build_dir, follow_symlinks=False)

        files_copied = 0
        staged: list[str] = []
        try:
            if build_dir.exists() or build_dir.is_symlink():
                logger.info("removing previous build directory %s", build_dir)
                shutil.rmtree(build_dir)
            build_dir.mkdir(parents=True)

            for entry in source.entries():
                dest = build_dir / entry.name
                if entry.is_dir() and not entry.is_symlink():
                    shutil.copytree(entry, dest, symlinks=True)
                    files_copied += sum(1 for p in dest.rglob("*") if not p.is_dir())
                else:
                    shutil.copy2(entry, dest, follow_symlinks=False)
                    files_copied += 1
                staged.append(entry.name)

            (build_dir / STAMP_NAME).touch()
        except OSError as exc:
            raise FilesystemError(f"Staging into {build_dir} failed: {exc}") from exc

        logger.info("staged %d entries (%d files) into %s", len(staged), files_copied, build_dir)
        return StageOutput(build_dir=str(build_dir), entries=staged, files_copied=files_copied)


def stamp_path(build_dir: str | Path) -> Path:
    """Path of the marker that records a completed staging."""
    return Path(build_dir) / STAMP_NAME
