"""Per-package build: select, rename, precompile, lint and concatenate.

A source package is laid out as::

    packages/<name>/lib/main.js, lib/*.js, lib/**/*.hbs
    packages/<name>/tests/**/*.js

and is turned into a library tree rooted at ``<name>/`` with ``main.js``
renamed to ``<name>.js``, a compiled ``/packages/<name>.js`` (dependencies plus
the package, loader included) and, unless tests are skipped, a compiled
``/packages/<name>-tests.js``.
"""

from __future__ import annotations

import logging
from typing import List

from .dependencies import resolve_dependencies
from .models import TreesBundle
from .session import BuildSession
from .trees import FileTree

logger = logging.getLogger(__name__)

SCRIPT_PATTERNS = ["**/*.js"]
TEMPLATE_PATTERNS = ["**/*.hbs"]


def library_destination(name: str) -> str:
    return f"/packages/{name}.js"


def tests_destination(name: str) -> str:
    return f"/packages/{name}-tests.js"


def build_package(session: BuildSession, name: str) -> TreesBundle:
    """Build ``name`` once per session and return its trees."""

    cached = session.cached(name)
    if cached is not None:
        return cached

    spec = session.registry.get(name)
    session.begin(name)
    try:
        trees = _build(session, name)
    except BaseException:
        session.abort(name)
        raise
    logger.info(
        "Built package %s (%d lib file(s)%s)",
        name,
        len(trees.lib),
        ", tests skipped" if spec.skip_tests else "",
    )
    return session.complete(name, trees)


def _build(session: BuildSession, name: str) -> TreesBundle:
    spec = session.registry.get(name)
    primitives = session.primitives
    config = session.config

    dependencies = resolve_dependencies(session, name, build=build_package)

    files = list(SCRIPT_PATTERNS)
    if spec.has_templates:
        files.extend(TEMPLATE_PATTERNS)

    lib_tree = primitives.select_files(spec.source_lib_path, files=files, src_dir="/", dest_dir=name)
    lib_tree = primitives.rename_file(lib_tree, src=f"{name}/main.js", dest=f"{name}.js")
    logger.debug("%s: selected %d library file(s)", name, len(lib_tree))

    lib_scripts = primitives.select_files(lib_tree, files=SCRIPT_PATTERNS, src_dir="/", dest_dir="/")
    lib_lint = {linter: primitives.lint(lib_scripts, linter=linter) for linter in ("jshint", "jscs")}

    if spec.has_templates:
        lib_tree = primitives.precompile_templates(lib_tree)
        logger.debug("%s: precompiled inline templates", name)

    test_tree = None
    if not spec.skip_tests:
        tests = primitives.select_files(
            spec.source_test_path,
            files=SCRIPT_PATTERNS,
            src_dir="/",
            dest_dir=f"{name}/tests",
        )
        test_trees: List[FileTree] = []
        for linter in config.enabled_linters():
            test_trees.append(lib_lint[linter])
            test_trees.append(primitives.lint(tests, linter=linter))
        test_trees.append(tests)
        test_tree = primitives.merge_trees(test_trees, on_collision="overwrite")
        logger.debug("%s: test tree has %d file(s)", name, len(test_tree))

    compiled_lib = primitives.concatenate_modules(
        list(dependencies.library_trees) + [lib_tree],
        destination=library_destination(name),
        include_loader=True,
        vendor_trees=dependencies.vendor_trees,
        inline_vendor=False,
    )
    compiled = [compiled_lib]
    if test_tree is not None:
        compiled.append(
            primitives.concatenate_modules(
                [test_tree],
                destination=tests_destination(name),
                include_loader=False,
            )
        )

    return TreesBundle(
        name=name,
        lib=lib_tree,
        compiled_tree=primitives.merge_trees(compiled),
        tests=test_tree,
        vendor_trees=dependencies.vendor_trees,
    )


__all__ = ["build_package", "library_destination", "tests_destination"]
