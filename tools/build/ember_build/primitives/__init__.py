"""File-tree primitives consumed by the build core.

The core only talks to a :class:`BuildPrimitives` implementation, so tests can
inject fakes that record calls instead of touching the file system.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

from ..config import BuildConfig
from ..registry import VendoredPackages
from ..trees import FileTree
from .files import CollisionPolicy, concat_files, merge_trees, read_tree, rename_file, select_files, write_static_file
from .lint import lint_tree
from .modules import concatenate_modules
from .templates import precompile_tree

TreeSource = Union[FileTree, str, Path]


class BuildPrimitives(Protocol):
    def select_files(
        self,
        source: TreeSource,
        *,
        files: Sequence[str],
        src_dir: str = "/",
        dest_dir: str = "/",
    ) -> FileTree: ...

    def rename_file(self, tree: FileTree, *, src: str, dest: str) -> FileTree: ...

    def merge_trees(self, trees: Sequence[FileTree], *, on_collision: CollisionPolicy = "error") -> FileTree: ...

    def lint(self, tree: FileTree, *, linter: str) -> FileTree: ...

    def precompile_templates(self, tree: FileTree) -> FileTree: ...

    def concatenate_modules(
        self,
        trees: Sequence[FileTree],
        *,
        destination: str,
        include_loader: bool = False,
        bootstrap_module: Optional[str] = None,
        vendor_trees: Sequence[FileTree] = (),
        inline_vendor: bool = True,
        input_patterns: Optional[Sequence[str]] = None,
    ) -> FileTree: ...

    def write_static_file(self, name: str, content: str) -> FileTree: ...

    def concat_files(self, tree: FileTree, *, input_files: Sequence[str], output_file: str) -> FileTree: ...


class DefaultPrimitives:
    """Primitives backed by the in-memory tree helpers and the workspace file system."""

    def __init__(
        self,
        *,
        workspace_root: Optional[Path] = None,
        config: Optional[BuildConfig] = None,
        vendored: Optional[VendoredPackages] = None,
    ) -> None:
        self.config = config or BuildConfig()
        self.workspace_root = workspace_root or self.config.workspace_root or Path.cwd()
        self.loader_tree = _vendored_loader(vendored)
        self.loader = self.loader_tree.read("loader.js") if self.loader_tree is not None else None

    def read_tree(self, path: Union[str, Path]) -> FileTree:
        return read_tree(self.workspace_root, str(path))

    def select_files(
        self,
        source: TreeSource,
        *,
        files: Sequence[str],
        src_dir: str = "/",
        dest_dir: str = "/",
    ) -> FileTree:
        tree = source if isinstance(source, FileTree) else self.read_tree(source)
        return select_files(tree, files=files, src_dir=src_dir, dest_dir=dest_dir)

    def rename_file(self, tree: FileTree, *, src: str, dest: str) -> FileTree:
        return rename_file(tree, src=src, dest=dest)

    def merge_trees(self, trees: Sequence[FileTree], *, on_collision: CollisionPolicy = "error") -> FileTree:
        return merge_trees(trees, on_collision=on_collision)

    def lint(self, tree: FileTree, *, linter: str) -> FileTree:
        strict = self.config.lint_strict and linter in self.config.enabled_linters()
        return lint_tree(tree, linter=linter, strict=strict)

    def precompile_templates(self, tree: FileTree) -> FileTree:
        return precompile_tree(tree)

    def concatenate_modules(
        self,
        trees: Sequence[FileTree],
        *,
        destination: str,
        include_loader: bool = False,
        bootstrap_module: Optional[str] = None,
        vendor_trees: Sequence[FileTree] = (),
        inline_vendor: bool = True,
        input_patterns: Optional[Sequence[str]] = None,
    ) -> FileTree:
        if include_loader and self.loader_tree is not None:
            vendor_trees = [tree for tree in vendor_trees if tree != self.loader_tree]
        return concatenate_modules(
            trees,
            destination=destination,
            include_loader=include_loader,
            bootstrap_module=bootstrap_module,
            vendor_trees=vendor_trees,
            inline_vendor=inline_vendor,
            input_patterns=input_patterns,
            loader=self.loader,
        )

    def write_static_file(self, name: str, content: str) -> FileTree:
        return write_static_file(name, content)

    def concat_files(self, tree: FileTree, *, input_files: Sequence[str], output_file: str) -> FileTree:
        return concat_files(tree, input_files=input_files, output_file=output_file)


def _vendored_loader(vendored: Optional[VendoredPackages]) -> Optional[FileTree]:
    if vendored is None:
        return None
    tree = vendored.find("loader")
    if tree is None or "loader.js" not in tree:
        return None
    return tree


__all__ = ["BuildPrimitives", "DefaultPrimitives", "TreeSource"]
