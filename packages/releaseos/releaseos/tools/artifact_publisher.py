"""ArtifactPublisherTool — stream the built package to the remote repository."""

from __future__ import annotations

import logging
import shlex
import subprocess
import tarfile
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import ExternalToolError, FilesystemError, MissingInputError
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import PublishInput, PublishOutput

logger = logging.getLogger(__name__)


def upload_command(data: PublishInput) -> list[str]:
    """Remote invocation, e.g. ``ssh repoman@host -- upload --product pve --dist stretch``."""
    return [
        *data.transport,
        data.remote,
        "--",
        data.remote_command,
        "--product",
        data.product,
        "--dist",
        data.dist,
    ]


class ArtifactPublisherTool(BaseTool):
    """Pipe a tar stream holding the artifact into the remote upload command.

    Never builds: the artifact must already exist and, when ``lint_report``
    is given, must have passed lint since it was built. Authentication is left to
    the transport. There are no retries.
    """

    @property
    def name(self) -> str:
        return "artifact_publisher"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return PublishInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return PublishOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.REMOTE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, PublishInput)

        artifact = Path(data.artifact)
        if not artifact.is_file():
            raise MissingInputError(f"Artifact {artifact} does not exist; run the deb target first")
        if data.lint_report is not None:
            report = Path(data.lint_report)
            if not report.is_file() or report.stat().st_mtime < artifact.stat().st_mtime:
                raise MissingInputError(
                    f"Artifact {artifact.name} has no passing lint report; run the deb target first"
                )

        argv = upload_command(data)
        logger.info("$ tar cf - %s | %s", artifact.name, shlex.join(argv))
        try:
            proc = subprocess.Popen(argv, stdin=subprocess.PIPE)
        except OSError as exc:
            raise ExternalToolError(
                f"Cannot run '{argv[0]}': {exc}", command=argv, returncode=127
            ) from exc

        try:
            with proc.stdin, tarfile.open(fileobj=proc.stdin, mode="w|") as tar:
                tar.add(artifact, arcname=artifact.name)
        except BrokenPipeError as exc:
            proc.wait()
            raise ExternalToolError(
                f"Upload stream closed early by '{argv[0]}' (exit status {proc.returncode})",
                command=argv,
                returncode=proc.returncode or 1,
            ) from exc
        except OSError as exc:
            # A partial archive already reached the remote command; abort it.
            proc.kill()
            proc.wait()
            raise FilesystemError(f"Cannot read {artifact} for upload: {exc}") from exc

        returncode = proc.wait()
        if returncode != 0:
            raise ExternalToolError(
                f"Upload of {artifact.name} to {data.remote} failed with status {returncode}",
                command=argv,
                returncode=returncode,
            )

        size = artifact.stat().st_size
        logger.info("published %s to %s (%s/%s)", artifact.name, data.remote, data.product, data.dist)
        return PublishOutput(artifact=str(artifact), remote=data.remote, bytes_sent=size)
