from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import SkippedTestsError
from .trees import FileTree


@dataclass(frozen=True)
class TreesBundle:
    """Outputs of one package build; stored once per session and never replaced."""

    name: str
    lib: FileTree
    compiled_tree: FileTree
    tests: Optional[FileTree] = None
    vendor_trees: Tuple[FileTree, ...] = ()

    def require_tests(self) -> FileTree:
        if self.tests is None:
            raise SkippedTestsError(self.name)
        return self.tests

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "name": self.name,
            "lib": list(self.lib.paths()),
            "compiled": list(self.compiled_tree.paths()),
        }
        if self.tests is not None:
            payload["tests"] = list(self.tests.paths())
        return payload


@dataclass(frozen=True)
class ResolvedDependencies:
    """Transitive requirements of a package, dependencies before dependents."""

    root: str
    packages: Tuple[str, ...] = ()
    library_trees: Tuple[FileTree, ...] = ()
    vendor_names: Tuple[str, ...] = ()
    vendor_trees: Tuple[FileTree, ...] = ()


__all__ = ["ResolvedDependencies", "TreesBundle"]
