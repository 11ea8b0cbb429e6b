"""Local repository metadata."""

from sec1_sast.repository.git_metadata import GitMetadataReader, remove_credentials

__all__ = [
    "GitMetadataReader",
    "remove_credentials",
]
