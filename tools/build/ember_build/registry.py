"""Package registry and vendored package lookup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import RegistryLoadError, UnknownPackageError, UnknownVendorError
from .trees import FileTree

logger = logging.getLogger(__name__)


class PackageSpec(BaseModel):
    """Declared metadata for one source package."""

    name: str
    lib_path: Optional[str] = Field(default=None, alias="libPath")
    test_path: Optional[str] = Field(default=None, alias="testPath")
    requirements: List[str] = Field(default_factory=list)
    vendor_requirements: List[str] = Field(default_factory=list, alias="vendorRequirements")
    has_templates: bool = Field(default=False, alias="hasTemplates")
    skip_tests: bool = Field(default=False, alias="skipTests")

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def _check_requirements(self) -> "PackageSpec":
        if self.name in self.requirements:
            raise ValueError(f"Package '{self.name}' cannot require itself.")
        for field_name in ("requirements", "vendor_requirements"):
            values = getattr(self, field_name)
            duplicates = sorted({value for value in values if values.count(value) > 1})
            if duplicates:
                raise ValueError(f"Package '{self.name}' lists duplicate {field_name}: {', '.join(duplicates)}")
        return self

    @property
    def source_lib_path(self) -> str:
        return self.lib_path or f"packages/{self.name}/lib"

    @property
    def source_test_path(self) -> str:
        return self.test_path or f"packages/{self.name}/tests"


class PackageRegistry:
    """Read-only mapping of package name to :class:`PackageSpec`."""

    def __init__(self, packages: Mapping[str, PackageSpec]) -> None:
        for name, spec in packages.items():
            if spec.name != name:
                raise RegistryLoadError(f"Registry key '{name}' does not match package name '{spec.name}'.")
        self._packages: Dict[str, PackageSpec] = dict(packages)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Mapping[str, Any]]) -> "PackageRegistry":
        packages: Dict[str, PackageSpec] = {}
        for name, entry in payload.items():
            data = dict(entry or {})
            data.setdefault("name", name)
            try:
                packages[name] = PackageSpec.model_validate(data)
            except ValidationError as exc:
                raise RegistryLoadError(f"Invalid registry entry '{name}': {exc}") from exc
        return cls(packages)

    def get(self, name: str, *, required_by: Optional[str] = None) -> PackageSpec:
        try:
            return self._packages[name]
        except KeyError:
            raise UnknownPackageError(name, required_by=required_by, available=self.names()) from None

    def names(self) -> List[str]:
        return list(self._packages)

    def __getitem__(self, name: str) -> PackageSpec:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __iter__(self) -> Iterator[str]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)


class VendoredPackages:
    """Pre-built vendor trees keyed by vendor name."""

    def __init__(self, trees: Optional[Mapping[str, FileTree]] = None) -> None:
        self._trees: Dict[str, FileTree] = dict(trees or {})

    @classmethod
    def from_directory(cls, root: Path) -> "VendoredPackages":
        if not root.is_dir():
            raise RegistryLoadError(f"Vendor directory not found: {root}")
        trees = {
            child.name: FileTree.from_directory(child, label=child.name)
            for child in sorted(root.iterdir())
            if child.is_dir()
        }
        logger.debug("Loaded %d vendored package(s) from %s", len(trees), root)
        return cls(trees)

    def get(self, name: str, *, required_by: Optional[str] = None) -> FileTree:
        try:
            return self._trees[name]
        except KeyError:
            raise UnknownVendorError(name, required_by=required_by) from None

    def find(self, name: str) -> Optional[FileTree]:
        return self._trees.get(name)

    def names(self) -> List[str]:
        return list(self._trees)

    def __contains__(self, name: object) -> bool:
        return name in self._trees

    def __len__(self) -> int:
        return len(self._trees)


def load_registry(path: Path) -> PackageRegistry:
    """Load a registry from a YAML (or JSON) file with a top-level ``packages`` mapping."""

    if not path.exists():
        raise RegistryLoadError(f"Registry file not found: {path}")
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise RegistryLoadError(f"Invalid YAML in registry {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RegistryLoadError(f"Registry {path} must be a mapping.")
    packages = payload.get("packages", payload)
    if not isinstance(packages, dict):
        raise RegistryLoadError(f"Registry {path} 'packages' must be a mapping.")
    registry = PackageRegistry.from_mapping(packages)
    logger.debug("Loaded %d package(s) from %s", len(registry), path)
    return registry


__all__ = ["PackageRegistry", "PackageSpec", "VendoredPackages", "load_registry"]
