"""DiskImageTool — provision the zero-filled scratch disk for the installer smoke test."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import FilesystemError
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import DiskImageInput, DiskImageOutput

logger = logging.getLogger(__name__)


def image_is_complete(path: str | Path, size: int) -> bool:
    """True when ``path`` is a regular file of exactly ``size`` bytes."""
    try:
        return Path(path).stat().st_size == size
    except OSError:
        return False


class DiskImageTool(BaseTool):
    """Create a file of ``block_size * block_count`` zero bytes.

    The file is sparse: it is sized with truncate() rather than written.
    A prior file of any size is replaced.
    """

    @property
    def name(self) -> str:
        return "disk_image"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return DiskImageInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return DiskImageOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, DiskImageInput)

        target = Path(data.path)
        size = data.size
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
            tmp = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.truncate(size)
                os.chmod(tmp, 0o644)
                os.replace(tmp, target)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise FilesystemError(f"Cannot create test image {target}: {exc}") from exc

        logger.info("created %s (%d x %d = %d bytes)", target, data.block_size, data.block_count, size)
        return DiskImageOutput(path=str(target), size=size)
