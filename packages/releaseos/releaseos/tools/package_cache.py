"""PackageCacheTool — collect the packages the installer ships into a local cache."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import FilesystemError, MissingInputError
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import PackageCacheInput, PackageCacheOutput

logger = logging.getLogger(__name__)


def read_manifest(path: str | Path) -> list[Path]:
    """Read a line-delimited list of package paths; blank lines are ignored."""
    manifest = Path(path)
    if not manifest.is_file():
        raise MissingInputError(f"Package manifest {manifest} not found")
    return [Path(line.strip()) for line in manifest.read_text().splitlines() if line.strip()]


class PackageCacheTool(BaseTool):
    """Rebuild ``cache_dir`` from the files listed in a manifest.

    Files are gathered in a sibling ``<cache_dir>.tmp`` directory which is
    renamed into place only once every file has been copied, so an
    interrupted run never leaves a partial cache behind.
    """

    @property
    def name(self) -> str:
        return "package_cache"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return PackageCacheInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return PackageCacheOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, PackageCacheInput)

        sources = read_manifest(data.manifest)
        missing = [str(p) for p in sources if not p.is_file()]
        if missing:
            raise MissingInputError(f"Listed package(s) not found: {', '.join(missing)}")

        cache_dir = Path(data.cache_dir)
        staging = cache_dir.with_name(cache_dir.name + ".tmp")
        files: list[str] = []
        try:
            for path in (cache_dir, staging):
                if path.exists():
                    shutil.rmtree(path)
            staging.mkdir(parents=True)
            for source in sources:
                dest = staging / source.name
                shutil.copyfile(source, dest)
                os.chmod(dest, data.mode)
                files.append(source.name)
            os.rename(staging, cache_dir)
        except OSError as exc:
            raise FilesystemError(f"Cannot populate package cache {cache_dir}: {exc}") from exc

        logger.info("cached %d package(s) in %s", len(files), cache_dir)
        return PackageCacheOutput(cache_dir=str(cache_dir), files=files)
