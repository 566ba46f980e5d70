"""Bundle assembly: compose package builds and vendor trees into one script."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Sequence, Tuple

from .dependencies import resolve_dependencies
from .package import build_package
from .session import BuildSession
from .trees import FileTree, normalize_path

logger = logging.getLogger(__name__)

TRAILER_FILE = "export-ember"


def exports_trailer(global_name: str = "Ember") -> str:
    """Trailer exposing the bootstrap module's global as the CommonJS export."""

    return f";module.exports = {global_name};\n"


def reexport_trailer(module: str) -> str:
    """Trailer re-exporting a registered module when loaded under a CommonJS module system."""

    return (
        ';\nif (typeof exports === "object") {\n'
        f"  module.exports = Ember.__loader.require({json.dumps(module)});\n"
        " }"
    )


@dataclass(frozen=True)
class FilePick:
    """An explicit allow-list of files taken from one package's library tree."""

    package: str
    files: Tuple[str, ...]


@dataclass(frozen=True)
class BundleSpec:
    name: str
    root: str
    destination: str
    trailer: str = ""
    strategy: Literal["transitive", "subset"] = "transitive"
    picks: Tuple[FilePick, ...] = ()
    vendor_scope: Literal["transitive", "root"] = "transitive"

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "root": self.root,
            "destination": self.destination,
            "strategy": self.strategy,
            "picks": [{"package": pick.package, "files": list(pick.files)} for pick in self.picks],
            "vendor_scope": self.vendor_scope,
        }


@dataclass(frozen=True)
class BundleResult:
    spec: BundleSpec
    artifact: FileTree
    packages: Tuple[str, ...]
    vendor_trees: Tuple[FileTree, ...]

    @property
    def path(self) -> str:
        return normalize_path(self.spec.destination)

    @property
    def content(self) -> str:
        return self.artifact.read(self.spec.destination)


def runtime_bundle(root: str = "ember-runtime", *, destination: str = "/ember-runtime.js") -> BundleSpec:
    return BundleSpec(
        name="runtime",
        root=root,
        destination=destination,
        trailer=exports_trailer(),
    )


def template_compiler_bundle(
    root: str = "ember-template-compiler",
    *,
    core_package: str = "ember-metal",
    core_files: Sequence[str] = ("ember-metal/core.js",),
    destination: str = "/ember-template-compiler.js",
) -> BundleSpec:
    return BundleSpec(
        name="template-compiler",
        root=root,
        destination=destination,
        trailer=reexport_trailer(root),
        strategy="subset",
        picks=(FilePick(package=core_package, files=tuple(core_files)),),
        vendor_scope="root",
    )


def assemble_bundle(session: BuildSession, spec: BundleSpec) -> BundleResult:
    """Assemble ``spec`` into a single artifact; package builds are reused, the bundle is not."""

    primitives = session.primitives
    root = build_package(session, spec.root)
    dependencies = None
    if spec.strategy == "transitive" or spec.vendor_scope == "transitive":
        dependencies = resolve_dependencies(session, spec.root, build=build_package)

    if spec.strategy == "transitive":
        packages = dependencies.packages + (spec.root,)
        library_trees = dependencies.library_trees + (root.lib,)
    elif spec.strategy == "subset":
        packages = (spec.root,) + tuple(pick.package for pick in spec.picks)
        library_trees = (root.lib,) + tuple(
            primitives.select_files(
                build_package(session, pick.package).lib,
                files=list(pick.files),
                src_dir="/",
                dest_dir="/",
            )
            for pick in spec.picks
        )
    else:
        raise ValueError(f"Unknown bundle strategy '{spec.strategy}' for bundle '{spec.name}'.")

    if spec.vendor_scope == "root":
        vendor_trees = tuple(
            session.vendored.get(vendor, required_by=spec.root)
            for vendor in session.registry.get(spec.root).vendor_requirements
        )
    else:
        vendor_trees = dependencies.vendor_trees

    compiled = primitives.concatenate_modules(
        list(library_trees),
        destination=spec.destination,
        include_loader=True,
        bootstrap_module=spec.root,
        vendor_trees=vendor_trees,
    )
    trailer = primitives.write_static_file(TRAILER_FILE, spec.trailer)
    artifact = primitives.concat_files(
        primitives.merge_trees([compiled, trailer]),
        input_files=[spec.destination, TRAILER_FILE],
        output_file=spec.destination,
    )

    logger.info(
        "Assembled bundle %s -> %s (%d package(s), %d vendor tree(s))",
        spec.name,
        spec.destination,
        len(packages),
        len(vendor_trees),
    )
    return BundleResult(spec=spec, artifact=artifact, packages=packages, vendor_trees=vendor_trees)


def assemble_all(session: BuildSession, names: Iterable[str]) -> List[BundleResult]:
    """Assemble catalogued bundles by name against one session."""

    return [assemble_bundle(session, get_bundle(name)) for name in names]


_BUNDLES: Dict[str, BundleSpec] = {}


def register_bundle(spec: BundleSpec) -> None:
    if spec.name in _BUNDLES:
        raise ValueError(f"Bundle '{spec.name}' already registered.")
    _BUNDLES[spec.name] = spec


def get_bundle(name: str) -> BundleSpec:
    try:
        return _BUNDLES[name]
    except KeyError as exc:
        available = ", ".join(sorted(_BUNDLES))
        raise KeyError(f"Unknown bundle '{name}'. Available bundles: {available}.") from exc


def list_bundles() -> Iterable[BundleSpec]:
    return _BUNDLES.values()


register_bundle(runtime_bundle())
register_bundle(template_compiler_bundle())


__all__ = [
    "BundleResult",
    "BundleSpec",
    "FilePick",
    "TRAILER_FILE",
    "assemble_all",
    "assemble_bundle",
    "exports_trailer",
    "get_bundle",
    "list_bundles",
    "reexport_trailer",
    "register_bundle",
    "runtime_bundle",
    "template_compiler_bundle",
]
