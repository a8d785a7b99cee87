"""DocsTool — delegate install and clean to the documentation sub-build."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import DocsInput, DocsOutput
from releaseos.tools._base import run_external

logger = logging.getLogger(__name__)


class DocsTool(BaseTool):
    """Run ``make -C <docs_dir> <target>``; skipped when there is no Makefile."""

    @property
    def name(self) -> str:
        return "docs"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return DocsInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return DocsOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, DocsInput)

        docs_dir = Path(data.docs_dir)
        if not (docs_dir / "Makefile").is_file():
            logger.info("no Makefile in %s, skipping docs %s", docs_dir, data.target)
            return DocsOutput(ran=False)

        run_external([*data.command, "-C", str(docs_dir), data.target], env=data.env)
        return DocsOutput(ran=True, exit_code=0)
