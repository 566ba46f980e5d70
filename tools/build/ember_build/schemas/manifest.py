"""Pydantic models describing a build output directory."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..output import write_text


class Checksum(BaseModel):
    sha256: str = Field(..., description="SHA-256 checksum of the written artifact.")

    model_config = ConfigDict(extra="forbid")


class ArtifactEntry(BaseModel):
    name: str
    path: str
    checksum: Checksum
    size: int
    kind: str = Field(default="bundle", description="'bundle' or 'package'.")
    packages: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class BuildManifest(BaseModel):
    built_at: datetime
    version: str
    artifacts: List[ArtifactEntry] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


def load_manifest(path: Path) -> BuildManifest:
    """Read a ``manifest.json`` written by a previous build."""

    return BuildManifest.model_validate_json(path.read_text(encoding="utf-8"))


def dump_manifest(manifest: BuildManifest, path: Path) -> None:
    write_text(path, manifest.model_dump_json(indent=2) + "\n", newline="\n")


def merge_manifest(manifest: BuildManifest, overrides: Mapping[str, Any]) -> BuildManifest:
    """Return a validated copy of ``manifest`` with top-level fields replaced by ``overrides``."""

    payload = manifest.model_dump()
    payload.update(overrides)
    return BuildManifest.model_validate(payload)
