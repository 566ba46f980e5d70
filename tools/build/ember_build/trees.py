"""Immutable in-memory file trees passed between build primitives."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Pattern, Tuple


def normalize_path(path: str) -> str:
    """Return a tree-relative POSIX path without leading or trailing slashes."""

    parts = [part for part in str(path).replace("\\", "/").split("/") if part and part != "."]
    if ".." in parts:
        raise ValueError(f"Tree paths may not traverse upwards: {path}")
    return "/".join(parts)


def join_path(*parts: str) -> str:
    return normalize_path("/".join(part for part in parts if part))


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> Pattern[str]:
    normalized = normalize_path(pattern)
    parts: list[str] = []
    index = 0
    while index < len(normalized):
        if normalized.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif normalized.startswith("**", index):
            parts.append(".*")
            index += 2
        elif normalized[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif normalized[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(normalized[index]))
            index += 1
    return re.compile("".join(parts) + r"\Z")


def match_pattern(path: str, pattern: str) -> bool:
    """Match a tree path against a glob pattern; ``*`` stays within a directory, ``**`` spans them."""

    return _compile_pattern(pattern).match(path) is not None


class FileTree:
    """A read-only mapping of relative path to text content.

    Trees are compared by content but shared by reference: primitives never
    mutate a tree, they return new ones.
    """

    __slots__ = ("_files", "label")

    def __init__(self, files: Optional[Mapping[str, str]] = None, *, label: Optional[str] = None) -> None:
        normalized: Dict[str, str] = {}
        for path, content in (files or {}).items():
            key = normalize_path(path)
            if not key:
                raise ValueError("Tree paths must not be empty.")
            normalized[key] = content
        self._files = MappingProxyType(dict(sorted(normalized.items())))
        self.label = label

    @classmethod
    def from_directory(cls, root: Path, *, label: Optional[str] = None) -> "FileTree":
        files: Dict[str, str] = {}
        for path in sorted(root.rglob("*")):
            if path.is_file():
                files[path.relative_to(root).as_posix()] = path.read_text(encoding="utf-8")
        return cls(files, label=label or root.name)

    @property
    def files(self) -> Mapping[str, str]:
        return self._files

    def paths(self) -> Tuple[str, ...]:
        return tuple(self._files)

    def read(self, path: str) -> str:
        key = normalize_path(path)
        try:
            return self._files[key]
        except KeyError as exc:
            raise KeyError(f"Path '{key}' not found in tree{self._describe()}.") from exc

    def items(self) -> Iterable[Tuple[str, str]]:
        return self._files.items()

    def _describe(self) -> str:
        return f" '{self.label}'" if self.label else ""

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileTree):
            return NotImplemented
        return dict(self._files) == dict(other._files)

    def __hash__(self) -> int:
        return hash(tuple(self._files.items()))

    def __repr__(self) -> str:
        label = f" {self.label!r}" if self.label else ""
        return f"<FileTree{label} files={len(self._files)}>"


__all__ = ["FileTree", "join_path", "match_pattern", "normalize_path"]
