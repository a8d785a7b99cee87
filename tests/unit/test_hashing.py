"""Tests for deterministic hashing and artifact metadata."""

from pathlib import Path

from pydantic import BaseModel

from buildos.integrity.hashing import canonical_json, hash_file, hash_model, sha256_hash
from buildos.schemas.artifact import ArtifactMeta


class _Sample(BaseModel):
    b: int = 2
    a: str = "x"


class TestCanonicalJson:
    def test_sorted_keys_no_whitespace(self) -> None:
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_paths_rendered_as_strings(self) -> None:
        assert canonical_json({"p": Path("/tmp/x")}) == '{"p":"/tmp/x"}'

    def test_model_hash_stable(self) -> None:
        assert hash_model(_Sample()) == hash_model(_Sample(a="x", b=2))
        assert hash_model(_Sample()) != hash_model(_Sample(b=3))


class TestHashFile:
    def test_matches_content_hash(self, tmp_path) -> None:
        path = tmp_path / "a.deb"
        path.write_bytes(b"deb-content")
        assert hash_file(path) == sha256_hash(b"deb-content")

    def test_artifact_meta_from_file(self, tmp_path) -> None:
        path = tmp_path / "pve-installer_5.0-7_all.deb"
        path.write_bytes(b"12345")
        meta = ArtifactMeta.from_file(path, root=tmp_path, produced_by_task="build")
        assert meta.path == "pve-installer_5.0-7_all.deb"
        assert meta.size == 5
        assert meta.sha256 == sha256_hash(b"12345")
        assert meta.produced_by_task == "build"
