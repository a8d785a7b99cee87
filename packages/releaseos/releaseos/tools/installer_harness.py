"""InstallerHarnessTool — run the installer in test mode against a scratch image."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import MissingInputError
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import HarnessInput, HarnessOutput
from releaseos.tools._base import run_external

logger = logging.getLogger(__name__)


class InstallerHarnessTool(BaseTool):
    """Smoke-test the installer: exit status 0 passes, anything else fails.

    The installer may be interactive, so its stdio is inherited rather than
    captured. ``env`` is applied to the child process only.
    """

    @property
    def name(self) -> str:
        return "installer_harness"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return HarnessInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return HarnessOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, HarnessInput)

        cwd = Path(data.cwd)
        image = Path(data.image)
        if not (image if image.is_absolute() else cwd / image).is_file():
            raise MissingInputError(f"Test image {image} does not exist")

        argv = [*data.command, str(image)]
        run_external(argv, cwd=cwd, env=data.env, capture=False)
        logger.info("installer smoke test passed")
        return HarnessOutput(passed=True, exit_code=0)
