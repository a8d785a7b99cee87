"""Shared test fixtures for BuildOS and ReleaseOS."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Any

import pytest

from buildos.core.identifiers import RunId, generate_run_id
from buildos.runtime.event_log import SQLiteEventLog
from buildos.schemas.events import BaseEvent, EventType
from releaseos.settings import PipelineSettings

INSTALLER_SOURCES = [
    "unconfigured.sh",
    "fake-start-stop-daemon",
    "policy-disable-rc.d",
    "interfaces",
    "proxlogo.png",
    "checktime",
    "proxinstall",
]


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def event_log():
    """In-memory SQLiteEventLog."""
    log = SQLiteEventLog(":memory:")
    yield log
    log.close()


@pytest.fixture()
def event_log_file(tmp_path):
    """File-backed SQLiteEventLog (for WAL/thread tests)."""
    db_path = tmp_path / "events.db"
    log = SQLiteEventLog(db_path)
    yield log
    log.close()


@pytest.fixture()
def run_id() -> RunId:
    """Generate a fresh RunId."""
    return generate_run_id()


@pytest.fixture()
def source_tree(tmp_path) -> Path:
    """A minimal installer source tree with every default source present."""
    root = tmp_path / "src"
    root.mkdir()
    for name in INSTALLER_SOURCES:
        write_file(root / name, f"# {name}\n", mode=0o755 if name != "proxlogo.png" else 0o644)
    write_file(root / "xinitrc", "exec proxinstall\n")
    write_file(root / "Xdefaults", "*background: black\n")
    write_file(root / "html" / "index.htm", "<html></html>\n")
    write_file(root / "html" / "style.css", "body {}\n")
    write_file(root / "debian" / "control", "Package: pve-installer\n")
    return root


@pytest.fixture()
def fake_bin(tmp_path, monkeypatch) -> Path:
    """Directory prepended to PATH for fake external commands."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir


@pytest.fixture()
def small_settings(tmp_path) -> PipelineSettings:
    """Default settings with a tiny test image and a manifest under tmp_path."""
    return PipelineSettings.model_validate({
        "image": {"block_size": 512, "block_count": 8},
        "package_manifest": str(tmp_path / "pve.files"),
    })


# ── Helpers ────────────────────────────────────────────────────────


def write_file(path: Path, content: str = "", mode: int = 0o644) -> Path:
    """Create ``path`` (and its parents) with ``content`` and ``mode``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, mode)
    return path


def make_script(bin_dir: Path, name: str, body: str) -> Path:
    """Write an executable shell script standing in for an external tool."""
    script = bin_dir / name
    script.write_text("#!/bin/sh\n" + body + "\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


def fake_dpkg_buildpackage(bin_dir: Path, artifact: str = "pve-installer_5.0-7_all.deb") -> Path:
    """Fake packaging command: writes the artifact and metadata into the parent directory."""
    return make_script(
        bin_dir,
        "dpkg-buildpackage",
        f'echo "building in $PWD"\n'
        f'printf "deb-content" > ../{artifact}\n'
        f"touch ../pve-installer_5.0-7_amd64.buildinfo ../pve-installer_5.0-7_amd64.changes",
    )


def mode_of(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


# ── Assertion Helpers ──────────────────────────────────────────────


def assert_event_sequence(events: list[BaseEvent], expected_types: list[EventType]) -> None:
    """Assert that events match the expected EventType sequence."""
    actual = [e.event_type for e in events]
    assert actual == expected_types, (
        f"Event sequence mismatch.\n"
        f"  Expected: {[t.value for t in expected_types]}\n"
        f"  Actual:   {[t.value for t in actual]}"
    )


def assert_has_event(
    events: list[BaseEvent],
    event_type: EventType,
    **payload_checks: Any,
) -> BaseEvent:
    """Assert that at least one event of the given type exists and matches payload checks.

    Returns the first matching event.
    """
    matching = [e for e in events if e.event_type == event_type]
    assert matching, f"No event of type {event_type.value} found in {len(events)} events"

    if payload_checks:
        for event in matching:
            if all(event.payload.get(k) == v for k, v in payload_checks.items()):
                return event
        checked = {k: v for k, v in payload_checks.items()}
        raise AssertionError(
            f"Found {len(matching)} {event_type.value} event(s) but none matched "
            f"payload checks: {checked}\n"
            f"Payloads: {[e.payload for e in matching]}"
        )

    return matching[0]
