"""Schema definitions for build metadata."""

from .manifest import ArtifactEntry, BuildManifest, Checksum, dump_manifest, load_manifest, merge_manifest

__all__ = [
    "ArtifactEntry",
    "BuildManifest",
    "Checksum",
    "dump_manifest",
    "load_manifest",
    "merge_manifest",
]
