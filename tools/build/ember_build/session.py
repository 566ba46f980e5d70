"""Build session: per-invocation memoization of package builds."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import BuildConfig
from .errors import CyclicDependencyError
from .models import TreesBundle
from .primitives import BuildPrimitives, DefaultPrimitives
from .registry import PackageRegistry, VendoredPackages

logger = logging.getLogger(__name__)


class _Pending:
    def __repr__(self) -> str:
        return "<pending>"


PENDING = _Pending()

PackageState = Union[TreesBundle, _Pending]


class BuildSession:
    """Owns the registry, vendor trees, primitives and the package build cache.

    Each package moves from absent to pending to built exactly once. The
    session is not safe for concurrent use; create one per build invocation.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        vendored: Optional[VendoredPackages] = None,
        *,
        primitives: Optional[BuildPrimitives] = None,
        config: Optional[BuildConfig] = None,
        workspace_root: Optional[Path] = None,
    ) -> None:
        self.registry = registry
        self.vendored = vendored or VendoredPackages()
        self.config = config or BuildConfig()
        self.primitives: BuildPrimitives = primitives or DefaultPrimitives(
            workspace_root=workspace_root,
            config=self.config,
            vendored=self.vendored,
        )
        self._states: Dict[str, PackageState] = {}
        self._pending: List[str] = []
        self.build_order: List[str] = []

    def state(self, name: str) -> str:
        value = self._states.get(name)
        if value is None:
            return "absent"
        if value is PENDING:
            return "pending"
        return "built"

    def cached(self, name: str) -> Optional[TreesBundle]:
        value = self._states.get(name)
        return value if isinstance(value, TreesBundle) else None

    def begin(self, name: str) -> None:
        if self._states.get(name) is PENDING:
            start = self._pending.index(name)
            raise CyclicDependencyError(self._pending[start:] + [name])
        if name in self._states:
            raise RuntimeError(f"Package '{name}' has already been built in this session.")
        self._states[name] = PENDING
        self._pending.append(name)

    def complete(self, name: str, trees: TreesBundle) -> TreesBundle:
        if self._states.get(name) is not PENDING:
            raise RuntimeError(f"Package '{name}' is not being built.")
        self._states[name] = trees
        self._pending.remove(name)
        self.build_order.append(name)
        logger.debug("Stored trees for %s", name)
        return trees

    def abort(self, name: str) -> None:
        if self._states.get(name) is PENDING:
            del self._states[name]
            self._pending.remove(name)


__all__ = ["BuildSession", "PENDING"]
