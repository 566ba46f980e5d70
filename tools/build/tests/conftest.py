from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import pytest

from ember_build.config import BuildConfig
from ember_build.registry import PackageRegistry, VendoredPackages
from ember_build.session import BuildSession

from helpers import EMBER_REGISTRY, RecordingPrimitives, write_files, write_package


@pytest.fixture
def ember_workspace(tmp_path: Path) -> Path:
    write_package(
        tmp_path,
        "container",
        {
            "main.js": "import Container from 'container/container';\nexport default Container;\n",
            "container.js": "function Container() {}\nexport default Container;\n",
        },
    )
    write_package(
        tmp_path,
        "ember-metal",
        {
            "main.js": "import Ember from 'ember-metal/core';\nexport default Ember;\n",
            "core.js": "var Ember = this.Ember = this.Ember || {};\nEmber.VERSION = '1.0.0';\nexport default Ember;\n",
            "utils.js": "export function guidFor(obj) {\n  return obj === null ? 'null' : String(obj);\n}\n",
        },
    )
    write_package(
        tmp_path,
        "ember-runtime",
        {
            "main.js": "import Ember from 'ember-metal';\nimport 'ember-runtime/system/object';\nexport default Ember;\n",
            "system/object.js": "import Ember from 'ember-metal/core';\nEmber.Object = function() {};\nexport default Ember.Object;\n",
        },
    )
    write_package(
        tmp_path,
        "ember-template-compiler",
        {
            "main.js": (
                "import Ember from 'ember-metal/core';\n"
                "import compile from 'ember-template-compiler/compile';\n"
                "export default { compile: compile };\n"
            ),
            "compile.js": "export default function compile(source) {\n  return source;\n}\n",
        },
    )
    write_files(tmp_path / "vendor" / "rsvp", {"rsvp.js": "define('rsvp', [], function() { return {}; });\n"})
    write_files(
        tmp_path / "vendor" / "simple-html-tokenizer",
        {"simple-html-tokenizer.js": "define('simple-html-tokenizer', [], function() { return {}; });\n"},
    )
    return tmp_path


@pytest.fixture
def session_factory(ember_workspace: Path) -> Callable[..., BuildSession]:
    def factory(
        packages: Optional[Mapping[str, Mapping[str, Any]]] = None,
        *,
        config: Optional[BuildConfig] = None,
        vendored: Optional[VendoredPackages] = None,
        record: bool = False,
    ) -> BuildSession:
        registry = PackageRegistry.from_mapping(packages if packages is not None else EMBER_REGISTRY)
        vendor = vendored if vendored is not None else VendoredPackages.from_directory(ember_workspace / "vendor")
        build_config = config or BuildConfig()
        primitives = None
        if record:
            primitives = RecordingPrimitives(workspace_root=ember_workspace, config=build_config, vendored=vendor)
        return BuildSession(
            registry,
            vendor,
            primitives=primitives,
            config=build_config,
            workspace_root=ember_workspace,
        )

    return factory
