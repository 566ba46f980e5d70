"""Exceptions raised by the build composer."""

from __future__ import annotations

from typing import Optional, Sequence


class BuildError(RuntimeError):
    """Base class for every failure surfaced by a build invocation."""


class ConfigurationError(BuildError):
    """Raised when the registry, vendor set or build configuration is malformed."""


class UnknownPackageError(ConfigurationError, KeyError):
    def __init__(self, name: str, *, required_by: Optional[str] = None, available: Sequence[str] = ()) -> None:
        self.name = name
        self.required_by = required_by
        message = f"Unknown package '{name}'"
        if required_by:
            message += f" (required by '{required_by}')"
        if available:
            message += f". Available packages: {', '.join(sorted(available))}"
        super().__init__(message + ".")

    def __str__(self) -> str:
        return self.args[0]


class UnknownVendorError(ConfigurationError, KeyError):
    def __init__(self, name: str, *, required_by: Optional[str] = None) -> None:
        self.name = name
        self.required_by = required_by
        message = f"Unknown vendored package '{name}'"
        if required_by:
            message += f" (required by '{required_by}')"
        super().__init__(message + ".")

    def __str__(self) -> str:
        return self.args[0]


class CyclicDependencyError(ConfigurationError):
    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Cyclic package requirements: {' -> '.join(self.cycle)}")


class RegistryLoadError(ConfigurationError):
    """Raised when a registry or vendor source cannot be loaded."""


class SourceError(BuildError):
    """Raised by file-tree primitives when their inputs are unusable."""


class MissingSourceError(SourceError):
    pass


class EmptySelectionError(SourceError):
    pass


class RenameCollisionError(SourceError):
    pass


class TreeCollisionError(SourceError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Merge collision on '{path}'; pass on_collision='overwrite' to allow it.")


class TemplateSyntaxError(SourceError):
    def __init__(self, message: str, *, path: Optional[str] = None, line: Optional[int] = None) -> None:
        self.path = path
        self.line = line
        location = ""
        if path:
            location = f"{path}:{line}: " if line else f"{path}: "
        super().__init__(f"{location}{message}")


class LintError(BuildError):
    def __init__(self, linter: str, violations: Sequence[str]) -> None:
        self.linter = linter
        self.violations = list(violations)
        summary = "; ".join(self.violations[:5])
        if len(self.violations) > 5:
            summary += f"; ... ({len(self.violations) - 5} more)"
        super().__init__(f"{linter} reported {len(self.violations)} violation(s): {summary}")


class SkippedTestsError(BuildError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Package '{name}' declares skipTests; it has no test tree.")


__all__ = [
    "BuildError",
    "ConfigurationError",
    "CyclicDependencyError",
    "EmptySelectionError",
    "LintError",
    "MissingSourceError",
    "RegistryLoadError",
    "RenameCollisionError",
    "SkippedTestsError",
    "SourceError",
    "TemplateSyntaxError",
    "TreeCollisionError",
    "UnknownPackageError",
    "UnknownVendorError",
]
