"""File-tree primitives: selection, renaming, merging and plain concatenation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Literal, Sequence

from ..errors import EmptySelectionError, MissingSourceError, RenameCollisionError, TreeCollisionError
from ..trees import FileTree, join_path, match_pattern, normalize_path

logger = logging.getLogger(__name__)

CollisionPolicy = Literal["error", "overwrite"]


def read_tree(root: Path, path: str) -> FileTree:
    """Load ``path`` (relative to ``root`` unless absolute) as a tree."""

    directory = Path(path)
    if not directory.is_absolute():
        directory = root / directory
    if not directory.is_dir():
        raise MissingSourceError(f"Source directory not found: {directory}")
    return FileTree.from_directory(directory, label=path)


def select_files(
    tree: FileTree,
    *,
    files: Sequence[str],
    src_dir: str = "/",
    dest_dir: str = "/",
) -> FileTree:
    """Pick files under ``src_dir`` matching any of ``files`` and re-root them under ``dest_dir``."""

    source_prefix = normalize_path(src_dir)
    selected: Dict[str, str] = {}
    for path, content in tree.items():
        if source_prefix:
            if not path.startswith(source_prefix + "/"):
                continue
            relative = path[len(source_prefix) + 1 :]
        else:
            relative = path
        if any(match_pattern(relative, pattern) for pattern in files):
            selected[join_path(dest_dir, relative)] = content

    if not selected:
        raise EmptySelectionError(
            f"No files matching {list(files)} under '{src_dir}' in {tree.label or 'tree'}."
        )
    logger.debug("Selected %d file(s) from %s into '%s'", len(selected), tree.label or "tree", dest_dir)
    return FileTree(selected, label=normalize_path(dest_dir) or tree.label)


def rename_file(tree: FileTree, *, src: str, dest: str) -> FileTree:
    source = normalize_path(src)
    target = normalize_path(dest)
    if source not in tree:
        raise MissingSourceError(f"Cannot rename '{source}': not present in {tree.label or 'tree'}.")
    if target in tree and target != source:
        raise RenameCollisionError(f"Cannot rename '{source}' to '{target}': destination exists.")
    files = {path: content for path, content in tree.items() if path != source}
    files[target] = tree.read(source)
    return FileTree(files, label=tree.label)


def merge_trees(trees: Iterable[FileTree], *, on_collision: CollisionPolicy = "error") -> FileTree:
    """Merge trees in order; later trees win under ``overwrite``, identical content never collides."""

    merged: Dict[str, str] = {}
    labels = []
    for tree in trees:
        if tree.label:
            labels.append(tree.label)
        for path, content in tree.items():
            existing = merged.get(path)
            if existing is not None and existing != content and on_collision != "overwrite":
                raise TreeCollisionError(path)
            merged[path] = content
    return FileTree(merged, label="+".join(labels) or None)


def write_static_file(name: str, content: str) -> FileTree:
    return FileTree({name: content}, label=normalize_path(name))


def concat_files(tree: FileTree, *, input_files: Sequence[str], output_file: str) -> FileTree:
    """Join the named files, in the given order, into ``output_file``."""

    chunks = []
    for name in input_files:
        path = normalize_path(name)
        if path not in tree:
            raise MissingSourceError(f"Cannot concatenate '{path}': not present in {tree.label or 'tree'}.")
        chunks.append(tree.read(path))
    return FileTree({output_file: "".join(chunks)}, label=normalize_path(output_file))


__all__ = [
    "CollisionPolicy",
    "concat_files",
    "merge_trees",
    "read_tree",
    "rename_file",
    "select_files",
    "write_static_file",
]
