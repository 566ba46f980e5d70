"""Module concatenation: loader shim, registered modules and bootstrap call."""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import MissingSourceError
from ..trees import FileTree, match_pattern

logger = logging.getLogger(__name__)

LOADER_SHIM = """\
var define, requireModule, require, requirejs, Ember;

(function() {
  Ember = this.Ember = this.Ember || {};
  if (typeof Ember.__loader === 'undefined') {
    var registry = {}, seen = {};

    define = function(name, deps, callback) {
      registry[name] = { deps: deps, callback: callback };
    };

    requirejs = require = requireModule = function(name) {
      if (seen.hasOwnProperty(name)) { return seen[name]; }
      if (!registry.hasOwnProperty(name)) {
        throw new Error('Could not find module ' + name);
      }
      var mod = registry[name];
      var module = { exports: {} };
      seen[name] = module.exports;
      mod.callback(module.exports, function(dep) {
        return requireModule(resolve(dep, name));
      }, module);
      seen[name] = module.exports;
      return module.exports;
    };

    function resolve(child, name) {
      if (child.charAt(0) !== '.') { return child; }
      var parts = child.split('/');
      var parentBase = name.split('/').slice(0, -1);
      for (var i = 0; i < parts.length; i++) {
        var part = parts[i];
        if (part === '..') { parentBase.pop(); }
        else if (part !== '.') { parentBase.push(part); }
      }
      return parentBase.join('/');
    }

    Ember.__loader = { define: define, require: requireModule, registry: registry };
  } else {
    define = Ember.__loader.define;
    requirejs = require = requireModule = Ember.__loader.require;
  }
})();
"""

DEFAULT_INPUT_PATTERNS = ("**/*.js",)


def module_name(path: str) -> str:
    return path[: -len(".js")] if path.endswith(".js") else path


def wrap_module(name: str, source: str) -> str:
    body = source if source.endswith("\n") or not source else source + "\n"
    return (
        f'define({json.dumps(name)}, ["exports", "require", "module"], function(exports, require, module) {{\n'
        f"{body}"
        "});\n"
    )


def bootstrap_call(name: str) -> str:
    return f"requireModule({json.dumps(name)});\n"


def _collect_modules(trees: Sequence[FileTree], patterns: Sequence[str]) -> Dict[str, str]:
    modules: Dict[str, str] = {}
    for tree in trees:
        for path, source in tree.items():
            if not any(match_pattern(path, pattern) for pattern in patterns):
                continue
            name = module_name(path)
            if name in modules and modules[name] != source:
                logger.warning("Module '%s' registered twice; keeping the later definition", name)
            modules[name] = source
    return modules


def _vendor_scripts(vendor_trees: Sequence[FileTree]) -> List[Tuple[str, str]]:
    """Return ``(vendor name, script)`` pairs; every tree contributes its scripts even when paths repeat."""

    scripts: List[Tuple[str, str]] = []
    for tree in vendor_trees:
        for path, source in tree.items():
            if path.endswith(".js"):
                scripts.append((tree.label or module_name(path), source))
    return scripts


def concatenate_modules(
    trees: Sequence[FileTree],
    *,
    destination: str,
    include_loader: bool = False,
    bootstrap_module: Optional[str] = None,
    vendor_trees: Sequence[FileTree] = (),
    inline_vendor: bool = True,
    input_patterns: Optional[Sequence[str]] = None,
    loader: Optional[str] = None,
) -> FileTree:
    """Concatenate module trees into a single script at ``destination``.

    Output order: loader shim, inlined vendor scripts, one ``define`` per
    module (tree order, then path order), bootstrap call. Vendor trees that are
    not inlined are listed in an ``externals`` header so the loader resolves
    them from a separately loaded script.
    """

    patterns = list(input_patterns or DEFAULT_INPUT_PATTERNS)
    modules = _collect_modules(trees, patterns)
    vendor = _vendor_scripts(vendor_trees)

    if bootstrap_module is not None and bootstrap_module not in modules:
        raise MissingSourceError(
            f"Bootstrap module '{bootstrap_module}' is not among the modules concatenated into {destination}."
        )

    chunks: List[str] = []
    if vendor and not inline_vendor:
        names = list(dict.fromkeys(name for name, _ in vendor))
        chunks.append(f"// externals: {', '.join(names)}\n")
    if include_loader:
        chunks.append(loader if loader is not None else LOADER_SHIM)
    if inline_vendor:
        chunks.extend(source if source.endswith("\n") else source + "\n" for _, source in vendor)
    chunks.extend(wrap_module(name, source) for name, source in modules.items())
    if bootstrap_module is not None:
        chunks.append(bootstrap_call(bootstrap_module))

    logger.debug(
        "Concatenated %d module(s) and %d vendor script(s) into %s",
        len(modules),
        len(vendor) if inline_vendor else 0,
        destination,
    )
    return FileTree({destination: "".join(chunks)}, label=destination.lstrip("/"))


__all__ = [
    "DEFAULT_INPUT_PATTERNS",
    "LOADER_SHIM",
    "bootstrap_call",
    "concatenate_modules",
    "module_name",
    "wrap_module",
]
