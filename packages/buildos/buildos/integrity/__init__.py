"""BuildOS integrity — content hashing for artifacts and tool calls."""

from buildos.integrity.hashing import canonical_json, hash_file, hash_model, sha256_hash

__all__ = [
    "canonical_json",
    "hash_file",
    "hash_model",
    "sha256_hash",
]
