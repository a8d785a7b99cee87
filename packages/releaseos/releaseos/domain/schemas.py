"""Pydantic v2 domain schemas for the installer release pipeline."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


def parse_mode(value: object) -> object:
    """Accept permission bits as an int or an octal string ("755", "0o644")."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        return int(text, 8)
    return value


# ── Core domain models ──────────────────────────────────────────────


class ArtifactSpec(BaseModel):
    """Identifies the package to be built.

    Version and revision are fixed per release cycle. They must match the
    release embedded in the installer script; that correspondence is kept
    by hand.
    """

    name: str = "pve-installer"
    version: str = "5.0"
    revision: str = "7"
    arch: str = "all"
    extension: str = "deb"
    release_channel: str = "stretch"

    @property
    def filename(self) -> str:
        """Deterministic artifact file name, e.g. ``pve-installer_5.0-7_all.deb``."""
        return f"{self.name}_{self.version}-{self.revision}_{self.arch}.{self.extension}"

    @property
    def metadata_patterns(self) -> list[str]:
        """Glob patterns of the build-metadata files written next to the artifact."""
        return [f"{self.name}_{self.version}-{self.revision}_*.buildinfo",
                f"{self.name}_{self.version}-{self.revision}_*.changes"]


class InstallKind(StrEnum):
    """What an install entry places at its destination."""

    FILE = "file"
    SYMLINK = "symlink"
    DIRECTORY = "directory"


class InstallEntry(BaseModel):
    """One rule of the install mapping.

    For symlinks ``source`` is the link target text, not a file to copy.
    Directories ignore ``source``.
    """

    source: str = ""
    dest: str = Field(description="Destination path, re-rooted under the install root")
    mode: int | None = Field(default=None, ge=0, le=0o7777)
    owner: str | None = Field(default=None, description="'user' or 'user:group'")
    kind: InstallKind = InstallKind.FILE

    @field_validator("mode", mode="before")
    @classmethod
    def _octal_mode(cls, value: object) -> object:
        return parse_mode(value)


class LintFinding(BaseModel):
    """A single tag reported by the lint tool."""

    severity: str
    package: str
    tag: str
    detail: str = ""


class LintReport(BaseModel):
    """Parsed result of a lint pass over the artifact."""

    artifact: str
    exit_code: int
    findings: list[LintFinding] = Field(default_factory=list)
    report: str = ""

    def by_severity(self, *severities: str) -> list[LintFinding]:
        return [f for f in self.findings if f.severity in severities]


# ── Tool I/O schemas ────────────────────────────────────────────────


class InstallMapInput(BaseModel):
    source_root: str = Field(description="Directory that relative sources resolve against")
    destdir: str = Field(default="/", description="Install root prefixed to every destination")
    entries: list[InstallEntry] = Field(default_factory=list)


class AppliedEntry(BaseModel):
    dest: str
    kind: InstallKind
    mode: int | None = None


class InstallMapOutput(BaseModel):
    applied: list[AppliedEntry] = Field(default_factory=list)


class StageInput(BaseModel):
    source_root: str
    build_dir: str = "build"
    exclude: list[str] = Field(
        default_factory=list,
        description="Top-level patterns that are pipeline outputs, never inputs",
    )


class StageOutput(BaseModel):
    build_dir: str
    entries: list[str] = Field(default_factory=list)
    files_copied: int = Field(ge=0)


class BuildInput(BaseModel):
    build_dir: str
    artifact: str = Field(description="Expected artifact path in the parent of build_dir")
    command: list[str] = Field(default_factory=lambda: ["dpkg-buildpackage", "-b", "-us", "-uc"])
    timeout: int | None = Field(default=None, gt=0)


class BuildOutput(BaseModel):
    artifact: str
    sha256: str
    size: int = Field(ge=0)


class LintInput(BaseModel):
    artifact: str
    command: list[str] = Field(default_factory=lambda: ["lintian"])
    exclude_categories: list[str] = Field(default_factory=lambda: ["man"])
    fatal_severities: list[str] = Field(default_factory=lambda: ["E"])
    report_path: str | None = None


class LintOutput(BaseModel):
    report: LintReport
    report_path: str | None = None


class DiskImageInput(BaseModel):
    path: str = "test.img"
    block_size: int = Field(default=2048, gt=0)
    block_count: int = Field(default=1 << 20, gt=0)

    @property
    def size(self) -> int:
        return self.block_size * self.block_count


class DiskImageOutput(BaseModel):
    path: str
    size: int = Field(ge=0)


class HarnessInput(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["./proxinstall", "-t"])
    image: str = "test.img"
    cwd: str = "."
    env: dict[str, str] = Field(default_factory=lambda: {"G_SLICE": "always-malloc"})


class HarnessOutput(BaseModel):
    passed: bool
    exit_code: int


class PublishInput(BaseModel):
    artifact: str
    lint_report: str | None = Field(
        default=None,
        description="Report left by a passing lint run; must not be older than the artifact",
    )
    remote: str = "repoman@repo.proxmox.com"
    product: str = "pve"
    dist: str = "stretch"
    transport: list[str] = Field(default_factory=lambda: ["ssh"])
    remote_command: str = "upload"


class PublishOutput(BaseModel):
    artifact: str
    remote: str
    bytes_sent: int = Field(ge=0)


class PackageCacheInput(BaseModel):
    manifest: str
    cache_dir: str = "packages"
    mode: int = Field(default=0o644, ge=0, le=0o7777)

    @field_validator("mode", mode="before")
    @classmethod
    def _octal_mode(cls, value: object) -> object:
        return parse_mode(value)


class PackageCacheOutput(BaseModel):
    cache_dir: str
    files: list[str] = Field(default_factory=list)


class CleanInput(BaseModel):
    root: str
    patterns: list[str] = Field(default_factory=list)
    recursive_patterns: list[str] = Field(default_factory=lambda: ["*~"])


class CleanOutput(BaseModel):
    removed: list[str] = Field(default_factory=list)


class DocsInput(BaseModel):
    docs_dir: str
    target: str
    command: list[str] = Field(default_factory=lambda: ["make"])
    env: dict[str, str] = Field(default_factory=dict)


class DocsOutput(BaseModel):
    ran: bool
    exit_code: int = 0
