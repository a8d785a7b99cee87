"""ArtifactValidatorTool — lint the built package and gate publishing on the result."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import ArtifactValidationError, MissingInputError
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import LintFinding, LintInput, LintOutput, LintReport
from releaseos.tools._base import run_external

logger = logging.getLogger(__name__)

# "E: pve-installer: binary-without-manpage usr/bin/proxinstall"
# "W: pve-installer source: ancient-standards-version 3.9.8"
_FINDING_RE = re.compile(
    r"^(?P<severity>[EWIPXOC]): (?P<package>[^\s:]+)(?: (?P<kind>\w+))?: "
    r"(?P<tag>\S+)(?: (?P<detail>.*))?$"
)


def parse_findings(output: str) -> list[LintFinding]:
    """Extract tagged findings from lint output, ignoring any other lines."""
    findings: list[LintFinding] = []
    for line in output.splitlines():
        match = _FINDING_RE.match(line.strip())
        if match is None:
            continue
        findings.append(
            LintFinding(
                severity=match["severity"],
                package=match["package"],
                tag=match["tag"],
                detail=match["detail"] or "",
            )
        )
    return findings


def lint_command(data: LintInput) -> list[str]:
    """Build the lint command line, suppressing the excluded check categories."""
    argv = list(data.command)
    if data.exclude_categories:
        argv += ["-X", ",".join(data.exclude_categories)]
    argv.append(data.artifact)
    return argv


class ArtifactValidatorTool(BaseTool):
    """Run the lint pass over the artifact and fail on remaining violations.

    The artifact is only read. A non-zero lint exit status, or any finding
    whose severity is listed as fatal, raises ArtifactValidationError.
    """

    @property
    def name(self) -> str:
        return "artifact_validator"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return LintInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return LintOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.READ

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, LintInput)

        artifact = Path(data.artifact)
        if not artifact.is_file():
            raise MissingInputError(f"Artifact {artifact} does not exist; build it first")
        if data.report_path:
            # Only a passing run leaves a report behind.
            Path(data.report_path).unlink(missing_ok=True)

        argv = lint_command(data)
        result = run_external(argv, check=False)
        text = (result.stdout or "") + (result.stderr or "")
        report = LintReport(
            artifact=str(artifact),
            exit_code=result.returncode,
            findings=parse_findings(text),
            report=text,
        )

        fatal = report.by_severity(*data.fatal_severities)
        if result.returncode != 0 or fatal:
            tags = ", ".join(sorted({f.tag for f in fatal})) or "see lint output"
            raise ArtifactValidationError(
                f"Lint rejected {artifact.name} (exit status {result.returncode}): {tags}",
                command=argv,
                returncode=result.returncode or 1,
                report=text,
            )

        report_path = None
        if data.report_path:
            report_path = Path(data.report_path)
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(text)
        logger.info("lint passed for %s with %d finding(s)", artifact.name, len(report.findings))
        return LintOutput(report=report, report_path=str(report_path) if report_path else None)
