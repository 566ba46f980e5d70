"""Transitive resolution of package requirements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .errors import ConfigurationError, CyclicDependencyError
from .models import ResolvedDependencies, TreesBundle
from .registry import PackageRegistry, VendoredPackages

if TYPE_CHECKING:
    from .session import BuildSession

logger = logging.getLogger(__name__)

PackageBuild = Callable[["BuildSession", str], TreesBundle]


def walk_requirements(registry: PackageRegistry, name: str) -> List[str]:
    """Return the transitive requirements of ``name``, dependencies before dependents.

    Traversal is depth-first in declaration order. A package reachable through
    several paths is listed once, at its first position. The root itself is
    not included.
    """

    registry.get(name)
    order: List[str] = []
    done: set[str] = set()
    resolving: List[str] = []

    def visit(current: str, parent: Optional[str]) -> None:
        if current in resolving:
            start = resolving.index(current)
            raise CyclicDependencyError(resolving[start:] + [current])
        if current in done:
            return
        spec = registry.get(current, required_by=parent)
        resolving.append(current)
        for requirement in spec.requirements:
            visit(requirement, current)
        resolving.pop()
        done.add(current)
        order.append(current)

    visit(name, None)
    return order[:-1]


def collect_vendor_names(registry: PackageRegistry, packages: List[str]) -> Dict[str, str]:
    """Map each vendor requirement of ``packages`` to the first package declaring it."""

    owners: Dict[str, str] = {}
    for package in packages:
        for vendor in registry.get(package).vendor_requirements:
            owners.setdefault(vendor, package)
    return owners


def resolve_dependencies(session: "BuildSession", name: str, *, build: PackageBuild) -> ResolvedDependencies:
    """Resolve and build everything ``name`` requires.

    The graph walk completes before any package is built, so a cyclic registry
    fails without side effects on the session.
    """

    registry = session.registry
    packages = walk_requirements(registry, name)
    vendor_owners = collect_vendor_names(registry, [name] + packages)
    vendor_trees = tuple(
        session.vendored.get(vendor, required_by=owner) for vendor, owner in vendor_owners.items()
    )

    library_trees = tuple(build(session, package).lib for package in packages)
    logger.debug(
        "Resolved %s: packages=%s vendor=%s",
        name,
        ", ".join(packages) or "-",
        ", ".join(vendor_owners) or "-",
    )
    return ResolvedDependencies(
        root=name,
        packages=tuple(packages),
        library_trees=library_trees,
        vendor_names=tuple(vendor_owners),
        vendor_trees=vendor_trees,
    )


def validate_registry(registry: PackageRegistry, vendored: Optional[VendoredPackages] = None) -> List[str]:
    """Return a list of configuration problems; an empty list means the registry is usable."""

    errors: List[str] = []
    for name in registry:
        spec = registry.get(name)
        for requirement in spec.requirements:
            if requirement not in registry:
                errors.append(f"Package '{name}' requires unknown package '{requirement}'.")
        if vendored is not None:
            for vendor in spec.vendor_requirements:
                if vendor not in vendored:
                    errors.append(f"Package '{name}' requires unknown vendored package '{vendor}'.")

    reported: set[tuple[str, ...]] = set()
    for name in registry:
        try:
            walk_requirements(registry, name)
        except CyclicDependencyError as exc:
            key = tuple(sorted(set(exc.cycle)))
            if key not in reported:
                reported.add(key)
                errors.append(str(exc))
        except ConfigurationError:
            continue
    return errors


__all__ = [
    "PackageBuild",
    "collect_vendor_names",
    "resolve_dependencies",
    "validate_registry",
    "walk_requirements",
]
