"""Build-graph composer for ES6 package bundles."""

__version__ = "0.1.0"

from .bundles import (
    BundleResult,
    BundleSpec,
    FilePick,
    assemble_all,
    assemble_bundle,
    get_bundle,
    list_bundles,
    register_bundle,
    runtime_bundle,
    template_compiler_bundle,
)
from .config import BuildConfig, load_build_config
from .dependencies import resolve_dependencies, validate_registry, walk_requirements
from .errors import (
    BuildError,
    ConfigurationError,
    CyclicDependencyError,
    SkippedTestsError,
    SourceError,
    UnknownPackageError,
    UnknownVendorError,
)
from .models import ResolvedDependencies, TreesBundle
from .package import build_package
from .primitives import BuildPrimitives, DefaultPrimitives
from .registry import PackageRegistry, PackageSpec, VendoredPackages, load_registry
from .session import BuildSession
from .trees import FileTree

__all__ = [
    "__version__",
    "BuildConfig",
    "BuildError",
    "BuildPrimitives",
    "BuildSession",
    "BundleResult",
    "BundleSpec",
    "ConfigurationError",
    "CyclicDependencyError",
    "DefaultPrimitives",
    "FilePick",
    "FileTree",
    "PackageRegistry",
    "PackageSpec",
    "ResolvedDependencies",
    "SkippedTestsError",
    "SourceError",
    "TreesBundle",
    "UnknownPackageError",
    "UnknownVendorError",
    "VendoredPackages",
    "assemble_all",
    "assemble_bundle",
    "build_package",
    "get_bundle",
    "list_bundles",
    "load_build_config",
    "load_registry",
    "register_bundle",
    "resolve_dependencies",
    "runtime_bundle",
    "template_compiler_bundle",
    "validate_registry",
    "walk_requirements",
]
