from __future__ import annotations

from pathlib import Path

import pytest

from ember_build.errors import EmptySelectionError, MissingSourceError, RenameCollisionError, TreeCollisionError
from ember_build.primitives.files import (
    concat_files,
    merge_trees,
    read_tree,
    rename_file,
    select_files,
    write_static_file,
)
from ember_build.trees import FileTree, match_pattern, normalize_path


def test_normalize_path_strips_slashes_and_dots() -> None:
    assert normalize_path("/ember-runtime.js") == "ember-runtime.js"
    assert normalize_path("./a//b/") == "a/b"
    with pytest.raises(ValueError):
        normalize_path("a/../b")


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("main.js", "**/*.js", True),
        ("system/object.js", "**/*.js", True),
        ("system/object.js", "*.js", False),
        ("ember-metal/core.js", "ember-metal/core.js", True),
        ("ember-metal/utils.js", "ember-metal/core.js", False),
        ("ember-views/templates/outlet.hbs", "**/*.hbs", True),
        ("ember-runtime/tests/a/b_test.js", "ember-runtime/**/*.js", True),
    ],
)
def test_match_pattern(path: str, pattern: str, expected: bool) -> None:
    assert match_pattern(path, pattern) is expected


def test_file_tree_is_sorted_and_compared_by_content() -> None:
    first = FileTree({"b.js": "b", "/a.js": "a"}, label="one")
    second = FileTree({"a.js": "a", "b.js": "b"}, label="two")

    assert first.paths() == ("a.js", "b.js")
    assert first == second
    assert "/a.js" in first
    with pytest.raises(KeyError, match="c.js"):
        first.read("c.js")


def test_read_tree_loads_directory(tmp_path: Path) -> None:
    (tmp_path / "src" / "nested").mkdir(parents=True)
    (tmp_path / "src" / "main.js").write_text("main", encoding="utf-8")
    (tmp_path / "src" / "nested" / "util.js").write_text("util", encoding="utf-8")

    tree = read_tree(tmp_path, "src")

    assert tree.paths() == ("main.js", "nested/util.js")
    assert tree.read("nested/util.js") == "util"


def test_read_tree_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(MissingSourceError, match="not found"):
        read_tree(tmp_path, "packages/missing/lib")


def test_select_files_filters_and_reroots() -> None:
    source = FileTree({"main.js": "m", "system/object.js": "o", "README.md": "r", "view.hbs": "{{name}}"})

    selected = select_files(source, files=["**/*.js"], dest_dir="ember-runtime")

    assert selected.paths() == ("ember-runtime/main.js", "ember-runtime/system/object.js")


def test_select_files_from_source_dir() -> None:
    source = FileTree({"ember-metal/core.js": "core", "ember-metal/utils.js": "utils", "ember-metal.js": "main"})

    selected = select_files(source, files=["core.js"], src_dir="ember-metal", dest_dir="/")

    assert selected.paths() == ("core.js",)


def test_select_files_without_match_raises() -> None:
    with pytest.raises(EmptySelectionError):
        select_files(FileTree({"a.txt": "a"}, label="docs"), files=["**/*.js"])


def test_rename_file_moves_entry_point() -> None:
    source = FileTree({"ember-runtime/main.js": "main", "ember-runtime/core.js": "core"})

    renamed = rename_file(source, src="ember-runtime/main.js", dest="ember-runtime.js")

    assert renamed.paths() == ("ember-runtime.js", "ember-runtime/core.js")
    assert renamed.read("ember-runtime.js") == "main"
    assert "ember-runtime/main.js" in source


def test_rename_file_errors() -> None:
    source = FileTree({"a/main.js": "main", "a.js": "other"})

    with pytest.raises(MissingSourceError):
        rename_file(source, src="a/missing.js", dest="b.js")
    with pytest.raises(RenameCollisionError):
        rename_file(source, src="a/main.js", dest="a.js")


def test_merge_trees_collision_policies() -> None:
    first = FileTree({"x.js": "one", "y.js": "same"})
    second = FileTree({"x.js": "two", "y.js": "same"})

    with pytest.raises(TreeCollisionError) as excinfo:
        merge_trees([first, second])
    assert excinfo.value.path == "x.js"

    merged = merge_trees([first, second], on_collision="overwrite")
    assert merged.read("x.js") == "two"
    assert merge_trees([first, FileTree({"y.js": "same"})]).read("y.js") == "same"


def test_concat_files_joins_in_requested_order() -> None:
    tree = merge_trees([FileTree({"bundle.js": "body\n"}), write_static_file("trailer", ";tail\n")])

    result = concat_files(tree, input_files=["trailer", "/bundle.js"], output_file="/out.js")

    assert result.read("out.js") == ";tail\nbody\n"
    with pytest.raises(MissingSourceError):
        concat_files(tree, input_files=["missing"], output_file="out.js")
