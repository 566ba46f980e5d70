"""Command-line entry point for package and bundle builds."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ember_build import __version__
from ember_build.bundles import assemble_all, get_bundle, list_bundles
from ember_build.config import BuildConfig, load_build_config
from ember_build.dependencies import validate_registry, walk_requirements
from ember_build.errors import BuildError, ConfigurationError
from ember_build.output import write_tree
from ember_build.package import build_package
from ember_build.registry import PackageRegistry, VendoredPackages, load_registry
from ember_build.schemas.manifest import ArtifactEntry, BuildManifest, Checksum, dump_manifest, merge_manifest
from ember_build.session import BuildSession

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        if args.command == "bundle":
            return _handle_bundle(args)
        if args.command == "package":
            return _handle_package(args)
        if args.command == "bundles":
            return _handle_bundles_list(args)
        if args.command == "registry":
            if args.registry_command == "validate":
                return _handle_registry_validate(args)
            if args.registry_command == "graph":
                return _handle_registry_graph(args)
            parser.error("registry command requires a subcommand")
    except BuildError as exc:
        logger.debug("Build failed", exc_info=True)
        _print_json({"error": str(exc), "type": type(exc).__name__})
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ember-build", description="Package and bundle build helpers.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level written to stderr.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    bundle = subparsers.add_parser("bundle", help="Assemble named bundles.")
    bundle.add_argument("bundles", nargs="*", default=["runtime"], help="Bundle names (default: runtime).")
    _add_build_arguments(bundle)

    package = subparsers.add_parser("package", help="Build packages and write their compiled trees.")
    package.add_argument("packages", nargs="+")
    _add_build_arguments(package)

    subparsers.add_parser("bundles", help="List catalogued bundles.")

    registry = subparsers.add_parser("registry", help="Registry utilities.")
    registry_sub = registry.add_subparsers(dest="registry_command", required=True)
    registry_validate = registry_sub.add_parser("validate", help="Check requirements, vendors and cycles.")
    _add_registry_arguments(registry_validate)
    registry_graph = registry_sub.add_parser("graph", help="Print the resolution order for a package.")
    registry_graph.add_argument("package")
    _add_registry_arguments(registry_graph)

    return parser


def _add_registry_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--registry", default="packages.yml", help="Registry YAML file.")
    parser.add_argument("--vendor-dir", help="Directory of vendored packages (default: <workspace>/vendor).")
    parser.add_argument("--workspace-root")


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    _add_registry_arguments(parser)
    parser.add_argument("--output-dir")
    parser.add_argument("--config", help="Build config YAML file.")
    parser.add_argument("--disable-jshint", action="store_true", default=None)
    parser.add_argument("--disable-jscs", action="store_true", default=None)
    parser.add_argument("--lint-strict", action="store_true", default=None)
    parser.add_argument("--manifest-override", action="append", help="Manifest overrides key=value.")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _handle_bundle(args: argparse.Namespace) -> int:
    for name in args.bundles:
        try:
            get_bundle(name)
        except KeyError as exc:
            raise ConfigurationError(exc.args[0]) from exc
    session, workspace = _open_session(args)
    output_dir = _output_dir(args, workspace)

    results = assemble_all(session, args.bundles)
    entries: List[ArtifactEntry] = []
    bundles: List[dict] = []
    for result in results:
        for artifact in write_tree(result.artifact, output_dir):
            entries.append(
                ArtifactEntry(
                    name=result.spec.name,
                    path=str(artifact.path.relative_to(output_dir).as_posix()),
                    checksum=Checksum(sha256=artifact.sha256),
                    size=artifact.size,
                    kind="bundle",
                    packages=list(result.packages),
                )
            )
            bundles.append({**artifact.to_dict(), "name": result.spec.name, "packages": list(result.packages)})

    manifest_path = _write_manifest(entries, session.config, output_dir, args.manifest_override)
    _print_json(
        {
            "output_dir": str(output_dir),
            "manifest_path": str(manifest_path),
            "bundles": bundles,
            "packages_built": session.build_order,
        }
    )
    return 0


def _handle_package(args: argparse.Namespace) -> int:
    session, workspace = _open_session(args)
    output_dir = _output_dir(args, workspace)

    entries: List[ArtifactEntry] = []
    packages: List[dict] = []
    for name in args.packages:
        trees = build_package(session, name)
        for artifact in write_tree(trees.compiled_tree, output_dir):
            entries.append(
                ArtifactEntry(
                    name=name,
                    path=str(artifact.path.relative_to(output_dir).as_posix()),
                    checksum=Checksum(sha256=artifact.sha256),
                    size=artifact.size,
                    kind="package",
                    packages=[name],
                )
            )
            packages.append({**artifact.to_dict(), "name": name})

    manifest_path = _write_manifest(entries, session.config, output_dir, args.manifest_override)
    _print_json(
        {
            "output_dir": str(output_dir),
            "manifest_path": str(manifest_path),
            "artifacts": packages,
            "packages_built": session.build_order,
        }
    )
    return 0


def _handle_bundles_list(args: argparse.Namespace) -> int:
    _print_json({"bundles": [spec.to_dict() for spec in list_bundles()]})
    return 0


def _handle_registry_validate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    registry = load_registry(_resolve_path(args.registry, workspace))
    vendored = _load_vendored(args.vendor_dir, workspace)
    errors = validate_registry(registry, vendored)
    _print_json({"valid": not errors, "errors": errors, "packages": registry.names()})
    return 0


def _handle_registry_graph(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    registry = load_registry(_resolve_path(args.registry, workspace))
    order = walk_requirements(registry, args.package)
    _print_json({"package": args.package, "requirements": order})
    return 0


def _open_session(args: argparse.Namespace) -> tuple[BuildSession, Path]:
    workspace = _resolve_workspace(args.workspace_root)
    config = load_build_config(
        _resolve_optional_path(args.config, workspace),
        overrides={
            "disable_jshint": args.disable_jshint,
            "disable_jscs": args.disable_jscs,
            "lint_strict": args.lint_strict,
        },
    )
    if config.workspace_root is not None:
        workspace = _resolve_path(str(config.workspace_root), workspace)
    registry: PackageRegistry = load_registry(_resolve_path(args.registry, workspace))
    vendored = _load_vendored(args.vendor_dir, workspace) or VendoredPackages()
    return BuildSession(registry, vendored, config=config, workspace_root=workspace), workspace


def _load_vendored(value: Optional[str], workspace: Path) -> Optional[VendoredPackages]:
    if value:
        return VendoredPackages.from_directory(_resolve_path(value, workspace))
    default = workspace / "vendor"
    if default.is_dir():
        return VendoredPackages.from_directory(default)
    return None


def _output_dir(args: argparse.Namespace, workspace: Path) -> Path:
    return _resolve_path(args.output_dir, workspace) if args.output_dir else workspace / "dist"


def _write_manifest(
    entries: List[ArtifactEntry],
    config: BuildConfig,
    output_dir: Path,
    overrides: Optional[Sequence[str]],
) -> Path:
    manifest = BuildManifest(
        built_at=datetime.now(timezone.utc),
        version=__version__,
        artifacts=entries,
        config=config.model_dump(mode="json", exclude={"workspace_root"}),
    )
    parsed = _parse_overrides(overrides)
    if parsed:
        try:
            manifest = merge_manifest(manifest, parsed)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid manifest override: {exc}") from exc
    manifest_path = output_dir / "manifest.json"
    dump_manifest(manifest, manifest_path)
    return manifest_path


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _resolve_optional_path(value: Optional[str], workspace: Path) -> Optional[Path]:
    if value is None:
        return None
    return _resolve_path(value, workspace)


def _parse_overrides(values: Optional[Sequence[str]]) -> Mapping[str, object]:
    overrides: dict[str, object] = {}
    if not values:
        return overrides
    for entry in values:
        if "=" not in entry:
            raise ConfigurationError(f"Manifest override must be key=value (got '{entry}')")
        key, raw_value = entry.split("=", 1)
        overrides[key.strip()] = _coerce_override_value(raw_value.strip())
    return overrides


def _coerce_override_value(value: str) -> object:
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    for caster in (int, float):
        try:
            return caster(value)
        except ValueError:
            continue
    return value


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
