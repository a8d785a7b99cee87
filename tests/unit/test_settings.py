"""Tests for PipelineSettings and SettingsManager."""

import json
import logging

import pytest

from buildos.core.errors import ConfigurationError
from releaseos.domain.schemas import InstallKind
from releaseos.settings import (
    CONFIG_ENV_VAR,
    PipelineSettings,
    SettingsManager,
    resolve_config_path,
)


class TestPipelineSettings:
    def test_defaults(self) -> None:
        s = PipelineSettings()
        assert s.artifact.filename == "pve-installer_5.0-7_all.deb"
        assert s.build_command == ["dpkg-buildpackage", "-b", "-us", "-uc"]
        assert s.lint.exclude_categories == ["man"]
        assert s.package_manifest == "/pve/5.0/install/pve.files"
        assert s.image.block_size * s.image.block_count == 2_147_483_648
        assert s.harness.env == {"G_SLICE": "always-malloc"}
        assert s.publish.remote == "repoman@repo.proxmox.com"
        assert "proxinstall" in s.sources
        assert "test.img" in s.clean_patterns

    def test_default_install_rules(self) -> None:
        entries = PipelineSettings().install
        dests = [e.dest for e in entries]
        assert dests[0] == "/etc/network/interfaces"
        assert "/usr/bin/proxinstall" in dests
        links = [e for e in entries if e.kind == InstallKind.SYMLINK]
        assert [e.dest for e in links] == ["/etc/resolv.conf", "/etc/resolv.conf.dhclient-new"]
        assert {e.source for e in links} == {"/tmp/resolv.conf.dhclient-new"}

    def test_partial_override(self) -> None:
        s = PipelineSettings.model_validate({"artifact": {"revision": "8"}, "lint": {"command": ["lint"]}})
        assert s.artifact.filename == "pve-installer_5.0-8_all.deb"
        assert s.lint.command == ["lint"]
        assert s.lint.exclude_categories == ["man"]


class TestSettingsManager:
    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        assert SettingsManager(tmp_path / "release.json").load() == PipelineSettings()

    def test_loads_file(self, tmp_path) -> None:
        path = tmp_path / "release.json"
        path.write_text(json.dumps({"build_dir": "out", "docs_dir": "docs"}))
        settings = SettingsManager(path).load()
        assert settings.build_dir == "out"
        assert settings.docs_dir == "docs"
        assert settings.sources == PipelineSettings().sources

    def test_invalid_file_falls_back(self, tmp_path, caplog) -> None:
        path = tmp_path / "release.json"
        path.write_text(json.dumps({"image": {"block_size": -1}}))
        with caplog.at_level(logging.WARNING):
            settings = SettingsManager(path).load()
        assert settings == PipelineSettings()
        assert "Failed to load settings" in caplog.text

    def test_unparsable_file_falls_back(self, tmp_path) -> None:
        path = tmp_path / "release.json"
        path.write_text("{not json")
        assert SettingsManager(path).load() == PipelineSettings()

    def test_strict_rejects_invalid_file(self, tmp_path) -> None:
        path = tmp_path / "release.json"
        path.write_text(json.dumps({"publish": {"remote": 7}}))
        with pytest.raises(ConfigurationError, match="Invalid settings file"):
            SettingsManager(path).load(strict=True)

    def test_strict_rejects_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            SettingsManager(tmp_path / "release.json").load(strict=True)


class TestResolveConfigPath:
    def test_explicit_wins(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.json"))
        assert resolve_config_path("given.json", tmp_path).name == "given.json"

    def test_environment(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.json"))
        assert resolve_config_path(None, tmp_path) == tmp_path / "env.json"

    def test_tree_default(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert resolve_config_path(None, tmp_path) == tmp_path / "release.json"
