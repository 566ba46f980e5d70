from __future__ import annotations

from pathlib import Path

import pytest

from ember_build.config import BuildConfig, load_build_config
from ember_build.errors import ConfigurationError


def test_defaults_enable_both_linters() -> None:
    config = load_build_config(env={})

    assert config == BuildConfig()
    assert config.enabled_linters() == ["jshint", "jscs"]


def test_yaml_file_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "build.yml"
    path.write_text("disable_jscs: true\nlint_strict: true\n", encoding="utf-8")

    config = load_build_config(path, env={})

    assert config.disable_jscs
    assert config.lint_strict
    assert config.enabled_linters() == ["jshint"]


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "build.yml"
    path.write_text("disable_jshint: false\n", encoding="utf-8")

    config = load_build_config(path, env={"DISABLE_JSHINT": "true", "DISABLE_JSCS": "0"})

    assert config.disable_jshint
    assert not config.disable_jscs


def test_explicit_overrides_win_and_none_is_ignored() -> None:
    config = load_build_config(
        env={"EMBER_BUILD_LINT_STRICT": "yes"},
        overrides={"lint_strict": False, "disable_jscs": None},
    )

    assert not config.lint_strict
    assert not config.disable_jscs


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "build.yml"
    path.write_text("disable_everything: true\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid build config"):
        load_build_config(path, env={})


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_build_config(tmp_path / "build.yml", env={})


def test_non_mapping_config(tmp_path: Path) -> None:
    path = tmp_path / "build.yml"
    path.write_text("- jshint\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_build_config(path, env={})


def test_config_is_frozen() -> None:
    config = BuildConfig()

    with pytest.raises(Exception):
        config.disable_jshint = True  # type: ignore[misc]
