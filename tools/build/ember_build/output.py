"""Helpers for writing build artifacts to disk."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .trees import FileTree


@dataclass(slots=True)
class WrittenArtifact:
    path: Path
    sha256: str
    size: int

    def to_dict(self) -> Dict[str, object]:
        return {"path": str(self.path), "sha256": self.sha256, "size": self.size}


def compute_sha256(path: Path) -> str:
    """Return the SHA-256 checksum for a file."""

    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def write_text(path: Path, content: str, *, newline: Optional[str] = None) -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline=newline)


def write_tree(tree: FileTree, output_dir: Path) -> List[WrittenArtifact]:
    """Write every file of ``tree`` below ``output_dir`` and summarise it."""

    written: List[WrittenArtifact] = []
    for relative, content in tree.items():
        target = output_dir / relative
        write_text(target, content, newline="\n")
        written.append(WrittenArtifact(path=target, sha256=compute_sha256(target), size=target.stat().st_size))
    return written


__all__ = ["WrittenArtifact", "compute_sha256", "write_text", "write_tree"]
