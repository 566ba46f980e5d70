"""Shared helpers for build tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ember_build.primitives import DefaultPrimitives


class RecordingPrimitives(DefaultPrimitives):
    """Default primitives that remember selection and concatenation requests."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.concatenations: List[Dict[str, Any]] = []
        self.selections: List[Dict[str, Any]] = []

    def select_files(self, source, *, files, src_dir="/", dest_dir="/"):  # type: ignore[override]
        self.selections.append({"source": source, "files": list(files), "dest_dir": dest_dir})
        return super().select_files(source, files=files, src_dir=src_dir, dest_dir=dest_dir)

    def concatenate_modules(self, trees, **options):  # type: ignore[override]
        self.concatenations.append({"trees": list(trees), **options})
        return super().concatenate_modules(trees, **options)

    def destinations(self) -> List[str]:
        return [call["destination"] for call in self.concatenations]

    def call_for(self, destination: str) -> Dict[str, Any]:
        matches = [call for call in self.concatenations if call["destination"] == destination]
        assert matches, f"no concatenation into {destination}: {self.destinations()}"
        return matches[-1]


def write_files(root: Path, files: Mapping[str, str]) -> None:
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def write_package(
    root: Path,
    name: str,
    lib: Optional[Mapping[str, str]] = None,
    tests: Optional[Mapping[str, str]] = None,
) -> None:
    lib_files = dict(lib or {"main.js": f"export default {{ name: '{name}' }};\n"})
    write_files(root / "packages" / name / "lib", lib_files)
    if tests is None:
        test_name = name.replace("-", "_")
        tests = {f"{test_name}_test.js": f"module('{name}');\ntest('loads', function() {{ ok(true); }});\n"}
    if tests:
        write_files(root / "packages" / name / "tests", tests)


def positions(text: str, needles: Sequence[str]) -> List[int]:
    found = []
    for needle in needles:
        index = text.find(needle)
        assert index >= 0, f"{needle!r} not found"
        found.append(index)
    return found


EMBER_REGISTRY: Dict[str, Dict[str, Any]] = {
    "container": {},
    "ember-metal": {},
    "ember-runtime": {
        "requirements": ["container", "ember-metal"],
        "vendorRequirements": ["rsvp"],
    },
    "ember-template-compiler": {
        "vendorRequirements": ["simple-html-tokenizer"],
    },
}
