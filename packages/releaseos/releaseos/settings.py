"""Pipeline settings — release descriptor and local configuration persistence."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from buildos.core.errors import ConfigurationError
from releaseos.domain.schemas import ArtifactSpec, InstallEntry, InstallKind

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RELEASEOS_CONFIG"
_SETTINGS_FILE = "release.json"

_RESOLV_TARGET = "/tmp/resolv.conf.dhclient-new"


def default_install_entries() -> list[InstallEntry]:
    """Install rules for the installer's runtime environment, in order."""
    return [
        InstallEntry(source="interfaces", dest="/etc/network/interfaces", mode=0o644),
        InstallEntry(dest="/var/lib/dhcp3", kind=InstallKind.DIRECTORY),
        InstallEntry(source=_RESOLV_TARGET, dest="/etc/resolv.conf", kind=InstallKind.SYMLINK),
        InstallEntry(
            source=_RESOLV_TARGET,
            dest="/etc/resolv.conf.dhclient-new",
            kind=InstallKind.SYMLINK,
        ),
        InstallEntry(
            source="fake-start-stop-daemon",
            dest="/var/lib/pve-installer/fake-start-stop-daemon",
            mode=0o755,
        ),
        InstallEntry(
            source="policy-disable-rc.d",
            dest="/var/lib/pve-installer/policy-disable-rc.d",
            mode=0o755,
        ),
        InstallEntry(source="proxlogo.png", dest="/var/lib/pve-installer/proxlogo.png", mode=0o644),
        InstallEntry(source="unconfigured.sh", dest="/sbin/unconfigured.sh", mode=0o755),
        InstallEntry(source="proxinstall", dest="/usr/bin/proxinstall", mode=0o755),
        InstallEntry(source="checktime", dest="/usr/bin/checktime", mode=0o755),
        InstallEntry(source="xinitrc", dest="/.xinitrc", mode=0o644),
        InstallEntry(source="Xdefaults", dest="/.Xdefaults", mode=0o644),
    ]


class LintSettings(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["lintian"])
    exclude_categories: list[str] = Field(default_factory=lambda: ["man"])
    fatal_severities: list[str] = Field(default_factory=lambda: ["E"])


class ImageSettings(BaseModel):
    path: str = "test.img"
    block_size: int = Field(default=2048, gt=0)
    block_count: int = Field(default=1 << 20, gt=0)


class HarnessSettings(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["./proxinstall", "-t"])
    env: dict[str, str] = Field(default_factory=lambda: {"G_SLICE": "always-malloc"})


class PublishSettings(BaseModel):
    remote: str = "repoman@repo.proxmox.com"
    product: str = "pve"
    transport: list[str] = Field(default_factory=lambda: ["ssh"])
    remote_command: str = "upload"


class PipelineSettings(BaseModel):
    """Everything the release targets need, passed explicitly to each stage.

    Defaults describe the 5.0 installer release. Paths are relative to
    the source tree root unless absolute.
    """

    artifact: ArtifactSpec = Field(default_factory=ArtifactSpec)

    # Inputs
    sources: list[str] = Field(
        default_factory=lambda: [
            "unconfigured.sh",
            "fake-start-stop-daemon",
            "policy-disable-rc.d",
            "interfaces",
            "proxlogo.png",
            "checktime",
            "proxinstall",
        ]
    )
    docs_sources: list[str] = Field(
        default_factory=lambda: ["html/*.htm", "html/*.css", "html/*.png"]
    )
    build_descriptors: list[str] = Field(
        default_factory=lambda: ["Makefile", "html/Makefile", "debian/*"],
        description="Files whose changes invalidate the package; missing ones are ignored",
    )

    # Build
    build_dir: str = "build"
    build_command: list[str] = Field(
        default_factory=lambda: ["dpkg-buildpackage", "-b", "-us", "-uc"]
    )
    build_timeout: int | None = Field(default=None, gt=0)
    stage_exclude: list[str] = Field(
        default_factory=lambda: [
            "*.deb",
            "*.buildinfo",
            "*.changes",
            "packages",
            "packages.tmp",
            "test.img",
            "target",
        ],
        description="Top-level pipeline outputs that are never copied into the build directory",
    )
    lint: LintSettings = Field(default_factory=LintSettings)

    # Install
    install: list[InstallEntry] = Field(default_factory=default_install_entries)
    docs_dir: str = "html"

    # Smoke test
    package_manifest: str = "/pve/5.0/install/pve.files"
    package_cache_dir: str = "packages"
    image: ImageSettings = Field(default_factory=ImageSettings)
    harness: HarnessSettings = Field(default_factory=HarnessSettings)

    # Publish
    publish: PublishSettings = Field(default_factory=PublishSettings)

    # Clean
    clean_patterns: list[str] = Field(
        default_factory=lambda: [
            "*~",
            "*.deb",
            "target",
            "build",
            "packages",
            "packages.tmp",
            "test.img",
            "pve-final.pkglist",
            "*.buildinfo",
            "*.changes",
        ]
    )
    clean_recursive_patterns: list[str] = Field(default_factory=lambda: ["*~"])


def resolve_config_path(explicit: str | None, root: str | Path) -> Path:
    """Pick the settings file: explicit path, then $RELEASEOS_CONFIG, then <root>/release.json."""
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return Path(root) / _SETTINGS_FILE


class SettingsManager:
    """Loads pipeline settings from a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self, *, strict: bool = False) -> PipelineSettings:
        """Load settings from disk. Returns defaults if the file doesn't exist.

        With ``strict`` a missing or invalid file raises ConfigurationError
        instead of falling back to the defaults.
        """
        if not self._path.exists():
            if strict:
                raise ConfigurationError(f"Settings file {self._path} not found")
            return PipelineSettings()
        try:
            data = json.loads(self._path.read_text())
            return PipelineSettings.model_validate(data)
        except Exception as exc:
            if strict:
                raise ConfigurationError(f"Invalid settings file {self._path}: {exc}") from exc
            logger.warning("Failed to load settings from %s: %s", self._path, exc)
            return PipelineSettings()
