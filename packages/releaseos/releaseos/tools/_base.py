"""Bridge between release tools, external processes, and the BuildOS event log."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import ExternalToolError
from buildos.core.identifiers import RunId
from buildos.integrity.hashing import hash_model
from buildos.runtime.event_log import EventLog
from buildos.runtime.sequence import SeqCounter
from buildos.schemas.artifact import ArtifactMeta
from buildos.schemas.events import ArtifactCreated, ToolCallFinished, ToolCallStarted
from buildos.tools.base import BaseTool

logger = logging.getLogger(__name__)


def run_external(
    command: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = True,
    timeout: int | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a delegated tool synchronously and, with ``check``, fail on a non-zero exit.

    ``env`` entries are layered on top of the current environment for the
    child only. With ``capture=True`` the child's output is collected and
    re-emitted through logging; otherwise stdio is inherited.

    Raises ExternalToolError carrying the child's exit status.
    """
    argv = list(command)
    child_env = dict(os.environ)
    if env:
        child_env.update(env)
    logger.info("$ %s", shlex.join(argv))
    try:
        result = subprocess.run(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            env=child_env,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError(
            f"Cannot run '{argv[0]}': {exc}", command=argv, returncode=127
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(
            f"Command timed out after {timeout}s: {shlex.join(argv)}", command=argv, returncode=124
        ) from exc
    except OSError as exc:
        # Not executable, or not a format the kernel can exec.
        raise ExternalToolError(
            f"Cannot run '{argv[0]}': {exc}", command=argv, returncode=126
        ) from exc

    if capture:
        for line in (result.stdout or "").splitlines():
            logger.info("  %s", line)
        for line in (result.stderr or "").splitlines():
            logger.warning("  %s", line)

    if check and result.returncode != 0:
        raise ExternalToolError(
            f"'{shlex.join(argv)}' exited with status {result.returncode}",
            command=argv,
            returncode=result.returncode,
        )
    return result


def execute_with_events(
    tool: BaseTool,
    input_data: BaseModel,
    event_log: EventLog,
    run_id: RunId,
    seq_counter: SeqCounter,
) -> BaseModel:
    """Execute a tool and emit ToolCallStarted/Finished events around it."""
    input_hash = hash_model(input_data)

    event_log.append(
        ToolCallStarted(
            run_id=run_id,
            seq=seq_counter.next(),
            payload={
                "tool_name": tool.name,
                "tool_version": tool.version,
                "input_hash": input_hash,
                "side_effect": tool.side_effect.value,
            },
        )
    )

    try:
        output = tool.execute(input_data)
        output_hash = hash_model(output)

        event_log.append(
            ToolCallFinished(
                run_id=run_id,
                seq=seq_counter.next(),
                payload={
                    "tool_name": tool.name,
                    "success": True,
                    "output_hash": output_hash,
                },
            )
        )
        return output
    except Exception as exc:
        payload = {
            "tool_name": tool.name,
            "success": False,
            "error": str(exc),
        }
        returncode = getattr(exc, "returncode", None)
        if returncode is not None:
            payload["returncode"] = returncode
        event_log.append(
            ToolCallFinished(
                run_id=run_id,
                seq=seq_counter.next(),
                payload=payload,
            )
        )
        raise


def record_artifact(
    meta: ArtifactMeta,
    event_log: EventLog,
    run_id: RunId,
    seq_counter: SeqCounter,
) -> None:
    """Emit an ArtifactCreated event for a produced file."""
    event_log.append(
        ArtifactCreated(
            run_id=run_id,
            seq=seq_counter.next(),
            payload=meta.model_dump(mode="json"),
        )
    )
