"""PackageBuilderTool — run the packaging toolchain against the staged tree."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import InconsistentArtifactError, MissingInputError
from buildos.integrity.hashing import hash_file
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import BuildInput, BuildOutput
from releaseos.tools._base import run_external

logger = logging.getLogger(__name__)


class PackageBuilderTool(BaseTool):
    """Invoke the packaging command in the build directory.

    The default command builds binary packages only, without signing.
    Success is the command's zero exit status; the artifact is expected in
    the parent of the build directory afterwards.
    """

    @property
    def name(self) -> str:
        return "package_builder"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return BuildInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return BuildOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, BuildInput)

        build_dir = Path(data.build_dir)
        if not build_dir.is_dir() or not any(build_dir.iterdir()):
            raise MissingInputError(
                f"Build directory {build_dir} is missing or empty; stage the sources first"
            )

        artifact = Path(data.artifact)
        # A stale artifact would hide a build that produced nothing.
        artifact.unlink(missing_ok=True)
        run_external(data.command, cwd=build_dir, timeout=data.timeout)

        if not artifact.is_file():
            raise InconsistentArtifactError(
                f"'{' '.join(data.command)}' reported success but {artifact} was not produced"
            )

        sha = hash_file(artifact)
        size = artifact.stat().st_size
        logger.info("built %s (%d bytes, sha256 %s)", artifact.name, size, sha[:12])
        return BuildOutput(artifact=str(artifact), sha256=sha, size=size)
