from __future__ import annotations

from typing import List

import pytest

from ember_build.dependencies import collect_vendor_names, resolve_dependencies, validate_registry, walk_requirements
from ember_build.errors import CyclicDependencyError, UnknownPackageError, UnknownVendorError
from ember_build.models import TreesBundle
from ember_build.registry import PackageRegistry, VendoredPackages
from ember_build.session import BuildSession
from ember_build.trees import FileTree

DIAMOND = {
    "p": {"requirements": ["a", "b"], "vendorRequirements": ["v1"]},
    "a": {"requirements": ["c"], "vendorRequirements": ["v2"]},
    "b": {"requirements": ["c"], "vendorRequirements": ["v1"]},
    "c": {"vendorRequirements": ["v3"]},
}


def _fake_build(calls: List[str]):
    def build(session: BuildSession, name: str) -> TreesBundle:
        calls.append(name)
        lib = FileTree({f"{name}.js": f"// {name}\n"}, label=name)
        return TreesBundle(name=name, lib=lib, compiled_tree=lib)

    return build


def test_walk_lists_dependencies_before_dependents() -> None:
    registry = PackageRegistry.from_mapping(DIAMOND)

    assert walk_requirements(registry, "p") == ["c", "a", "b"]
    assert walk_requirements(registry, "a") == ["c"]
    assert walk_requirements(registry, "c") == []


def test_walk_reports_cycle_path() -> None:
    registry = PackageRegistry.from_mapping(
        {"a": {"requirements": ["b"]}, "b": {"requirements": ["c"]}, "c": {"requirements": ["a"]}}
    )

    with pytest.raises(CyclicDependencyError) as excinfo:
        walk_requirements(registry, "a")

    assert excinfo.value.cycle == ["a", "b", "c", "a"]
    assert "a -> b -> c -> a" in str(excinfo.value)


def test_walk_names_package_with_unknown_requirement() -> None:
    registry = PackageRegistry.from_mapping({"a": {"requirements": ["ghost"]}})

    with pytest.raises(UnknownPackageError) as excinfo:
        walk_requirements(registry, "a")

    assert excinfo.value.name == "ghost"
    assert excinfo.value.required_by == "a"


def test_unknown_root_package() -> None:
    registry = PackageRegistry.from_mapping(DIAMOND)

    with pytest.raises(UnknownPackageError, match="Available packages"):
        walk_requirements(registry, "missing")


def test_vendor_names_are_deduplicated_in_walk_order() -> None:
    registry = PackageRegistry.from_mapping(DIAMOND)

    owners = collect_vendor_names(registry, ["p", "c", "a", "b"])

    assert list(owners) == ["v1", "v3", "v2"]
    assert owners["v1"] == "p"


def test_resolve_dependencies_builds_each_requirement_once() -> None:
    registry = PackageRegistry.from_mapping(DIAMOND)
    vendored = VendoredPackages({name: FileTree({f"{name}.js": ""}, label=name) for name in ("v1", "v2", "v3")})
    session = BuildSession(registry, vendored)
    calls: List[str] = []

    resolved = resolve_dependencies(session, "p", build=_fake_build(calls))

    assert calls == ["c", "a", "b"]
    assert resolved.packages == ("c", "a", "b")
    assert [tree.label for tree in resolved.library_trees] == ["c", "a", "b"]
    assert resolved.vendor_names == ("v1", "v3", "v2")
    assert [tree.label for tree in resolved.vendor_trees] == ["v1", "v3", "v2"]


def test_cycle_fails_before_any_build() -> None:
    registry = PackageRegistry.from_mapping({"a": {"requirements": ["b"]}, "b": {"requirements": ["a"]}})
    session = BuildSession(registry)
    calls: List[str] = []

    with pytest.raises(CyclicDependencyError):
        resolve_dependencies(session, "a", build=_fake_build(calls))

    assert calls == []
    assert session.state("a") == "absent"


def test_unknown_vendor_names_requiring_package() -> None:
    registry = PackageRegistry.from_mapping({"a": {"vendorRequirements": ["jquery"]}})
    session = BuildSession(registry)

    with pytest.raises(UnknownVendorError, match="required by 'a'"):
        resolve_dependencies(session, "a", build=_fake_build([]))


def test_validate_registry_collects_problems() -> None:
    registry = PackageRegistry.from_mapping(
        {
            "a": {"requirements": ["b"], "vendorRequirements": ["jquery"]},
            "b": {"requirements": ["a"]},
            "c": {"requirements": ["ghost"]},
        }
    )

    errors = validate_registry(registry, VendoredPackages())

    assert "Package 'c' requires unknown package 'ghost'." in errors
    assert "Package 'a' requires unknown vendored package 'jquery'." in errors
    cycles = [error for error in errors if error.startswith("Cyclic")]
    assert cycles == ["Cyclic package requirements: a -> b -> a"]


def test_validate_registry_accepts_valid_graph() -> None:
    assert validate_registry(PackageRegistry.from_mapping(DIAMOND)) == []


def test_session_state_transitions() -> None:
    session = BuildSession(PackageRegistry.from_mapping(DIAMOND))
    lib = FileTree({"c.js": ""})
    trees = TreesBundle(name="c", lib=lib, compiled_tree=lib)

    assert session.state("c") == "absent"
    session.begin("c")
    assert session.state("c") == "pending"
    with pytest.raises(CyclicDependencyError):
        session.begin("c")
    assert session.complete("c", trees) is trees
    assert session.state("c") == "built"
    assert session.cached("c") is trees
    assert session.build_order == ["c"]
    with pytest.raises(RuntimeError):
        session.begin("c")


def test_session_abort_returns_to_absent() -> None:
    session = BuildSession(PackageRegistry.from_mapping(DIAMOND))

    session.begin("a")
    session.abort("a")

    assert session.state("a") == "absent"
    assert session.cached("a") is None
