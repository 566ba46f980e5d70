"""Build configuration: lint toggles and workspace settings."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "DISABLE_JSHINT": "disable_jshint",
    "DISABLE_JSCS": "disable_jscs",
    "EMBER_BUILD_LINT_STRICT": "lint_strict",
}


class BuildConfig(BaseModel):
    disable_jshint: bool = Field(default=False, description="Leave jshint results out of test trees.")
    disable_jscs: bool = Field(default=False, description="Leave jscs results out of test trees.")
    lint_strict: bool = Field(default=False, description="Fail the build on the first lint violation.")
    workspace_root: Optional[Path] = Field(default=None, description="Root that package paths resolve against.")

    model_config = ConfigDict(extra="forbid", frozen=True)

    def enabled_linters(self) -> list[str]:
        linters: list[str] = []
        if not self.disable_jshint:
            linters.append("jshint")
        if not self.disable_jscs:
            linters.append("jscs")
        return linters


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def load_build_config(
    path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> BuildConfig:
    """Load configuration from an optional YAML file, then apply environment and explicit overrides."""

    payload: Dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigurationError(f"Build config not found: {path}")
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in build config {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Build config {path} must be a mapping, got {type(loaded).__name__}.")
        payload.update(loaded)

    environ = os.environ if env is None else env
    for variable, field_name in ENV_OVERRIDES.items():
        if variable in environ:
            payload[field_name] = _to_bool(environ[variable])
            logger.debug("Config %s set from %s", field_name, variable)

    if overrides:
        payload.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return BuildConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid build config: {exc}") from exc


__all__ = ["BuildConfig", "ENV_OVERRIDES", "load_build_config"]
