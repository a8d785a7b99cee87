"""Tests for DiskImageTool, PackageCacheTool and InstallerHarnessTool."""

import os

import pytest

from buildos.core.errors import ExternalToolError, MissingInputError
from releaseos.domain.schemas import DiskImageInput, HarnessInput, PackageCacheInput
from releaseos.tools.disk_image import DiskImageTool, image_is_complete
from releaseos.tools.installer_harness import InstallerHarnessTool
from releaseos.tools.package_cache import PackageCacheTool, read_manifest
from tests.conftest import make_script, mode_of, write_file


class TestDiskImage:
    def test_default_size(self, tmp_path) -> None:
        target = tmp_path / "test.img"
        out = DiskImageTool().execute(DiskImageInput(path=str(target)))
        assert out.size == 2_147_483_648
        assert target.stat().st_size == 2_147_483_648
        assert image_is_complete(target, 2_147_483_648)

    @pytest.mark.parametrize("prior_size", [0, 100, 5000])
    def test_replaces_prior_file(self, tmp_path, prior_size) -> None:
        target = tmp_path / "test.img"
        target.write_bytes(b"\xff" * prior_size)
        DiskImageTool().execute(DiskImageInput(path=str(target), block_size=512, block_count=4))
        assert target.read_bytes() == b"\x00" * 2048

    def test_image_is_complete_missing(self, tmp_path) -> None:
        assert not image_is_complete(tmp_path / "nope.img", 10)


class TestPackageCache:
    def test_three_listed_files(self, tmp_path) -> None:
        pkgs = [write_file(tmp_path / "pool" / f"p{i}.deb", f"pkg{i}", mode=0o600) for i in range(3)]
        manifest = write_file(tmp_path / "pve.files", "\n".join(str(p) for p in pkgs) + "\n\n")
        cache = tmp_path / "packages"
        write_file(cache / "stale.deb", "old")
        write_file(tmp_path / "packages.tmp" / "junk", "junk")

        out = PackageCacheTool().execute(PackageCacheInput(manifest=str(manifest), cache_dir=str(cache)))

        assert out.files == ["p0.deb", "p1.deb", "p2.deb"]
        assert sorted(os.listdir(cache)) == ["p0.deb", "p1.deb", "p2.deb"]
        assert all(mode_of(cache / name) == 0o644 for name in out.files)
        assert (cache / "p1.deb").read_text() == "pkg1"
        assert not (tmp_path / "packages.tmp").exists()

    def test_missing_manifest(self, tmp_path) -> None:
        with pytest.raises(MissingInputError, match="manifest"):
            PackageCacheTool().execute(PackageCacheInput(manifest=str(tmp_path / "none")))

    def test_missing_listed_file_keeps_old_cache(self, tmp_path) -> None:
        manifest = write_file(tmp_path / "pve.files", str(tmp_path / "gone.deb") + "\n")
        cache = tmp_path / "packages"
        write_file(cache / "old.deb", "old")
        with pytest.raises(MissingInputError, match="gone.deb"):
            PackageCacheTool().execute(PackageCacheInput(manifest=str(manifest), cache_dir=str(cache)))
        assert (cache / "old.deb").exists()

    def test_read_manifest_ignores_blank_lines(self, tmp_path) -> None:
        manifest = write_file(tmp_path / "m", "/a.deb\n\n  /b.deb  \n")
        assert [str(p) for p in read_manifest(manifest)] == ["/a.deb", "/b.deb"]


class TestInstallerHarness:
    def test_pass_sets_env_and_args(self, tmp_path) -> None:
        write_file(tmp_path / "test.img", "")
        record = tmp_path / "record"
        make_script(tmp_path, "proxinstall", f'echo "$G_SLICE $@" > {record}')

        out = InstallerHarnessTool().execute(HarnessInput(cwd=str(tmp_path)))

        assert out.passed
        assert record.read_text().split() == ["always-malloc", "-t", "test.img"]

    def test_failure_exit_status(self, tmp_path) -> None:
        write_file(tmp_path / "test.img", "")
        make_script(tmp_path, "proxinstall", "exit 3")
        with pytest.raises(ExternalToolError) as exc_info:
            InstallerHarnessTool().execute(HarnessInput(cwd=str(tmp_path)))
        assert exc_info.value.returncode == 3

    def test_missing_image(self, tmp_path) -> None:
        make_script(tmp_path, "proxinstall", "exit 0")
        with pytest.raises(MissingInputError, match="test.img"):
            InstallerHarnessTool().execute(HarnessInput(cwd=str(tmp_path)))

    def test_missing_installer(self, tmp_path) -> None:
        write_file(tmp_path / "test.img", "")
        with pytest.raises(ExternalToolError) as exc_info:
            InstallerHarnessTool().execute(HarnessInput(cwd=str(tmp_path)))
        assert exc_info.value.returncode == 127
