"""ReleaseOS domain models."""
