"""Lint passes that emit companion test files instead of altering sources.

Each pass checks every ``.js`` file of a tree and produces one QUnit test per
file, so lint failures show up as failing tests in the browser runner. The
``jshint`` pass looks for risky constructs, the ``jscs`` pass for style
problems. In strict mode the first file with violations raises
:class:`~ember_build.errors.LintError` instead.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import LintError
from ..trees import FileTree

logger = logging.getLogger(__name__)

LineCheck = Callable[[str], Optional[str]]

MAX_LINE_LENGTH = 120

_LINE_COMMENT = re.compile(r"//.*$")
_STRING_LITERAL = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"")


def _code_only(line: str) -> str:
    return _LINE_COMMENT.sub("", _STRING_LITERAL.sub("''", line))


def _no_debugger(line: str) -> Optional[str]:
    if re.search(r"\bdebugger\b", _code_only(line)):
        return "Forbidden 'debugger' statement."
    return None


def _strict_equality(line: str) -> Optional[str]:
    if re.search(r"(?<![=!<>])(==|!=)(?!=)", _code_only(line)):
        return "Expected '===' or '!==' for comparison."
    return None


def _no_eval(line: str) -> Optional[str]:
    if re.search(r"\beval\s*\(", _code_only(line)):
        return "'eval' can be harmful."
    return None


def _no_with(line: str) -> Optional[str]:
    if re.search(r"\bwith\s*\(", _code_only(line)):
        return "Don't use 'with'."
    return None


def _no_trailing_whitespace(line: str) -> Optional[str]:
    if line != line.rstrip(" \t"):
        return "Illegal trailing whitespace."
    return None


def _no_tabs(line: str) -> Optional[str]:
    if "\t" in line[: len(line) - len(line.lstrip())]:
        return "Invalid tab indentation."
    return None


def _max_line_length(line: str) -> Optional[str]:
    if len(line) > MAX_LINE_LENGTH:
        return f"Line must be at most {MAX_LINE_LENGTH} characters."
    return None


@dataclass(frozen=True)
class LintPass:
    name: str
    title: str
    suffix: str
    checks: Tuple[LineCheck, ...]
    require_final_newline: bool = False

    def check(self, source: str) -> List[str]:
        violations: List[str] = []
        for number, line in enumerate(source.splitlines(), start=1):
            for check in self.checks:
                message = check(line)
                if message:
                    violations.append(f"line {number}: {message}")
        if self.require_final_newline and source and not source.endswith("\n"):
            violations.append("Missing line feed at file end.")
        return violations

    def companion_path(self, path: str) -> str:
        stem = path[: -len(".js")] if path.endswith(".js") else path
        return f"{stem}.{self.suffix}"


LINT_PASSES: Dict[str, LintPass] = {
    "jshint": LintPass(
        name="jshint",
        title="JSHint",
        suffix="jshint.js",
        checks=(_no_debugger, _strict_equality, _no_eval, _no_with),
    ),
    "jscs": LintPass(
        name="jscs",
        title="JSCS",
        suffix="jscs-test.js",
        checks=(_no_trailing_whitespace, _no_tabs, _max_line_length),
        require_final_newline=True,
    ),
}


def get_lint_pass(name: str) -> LintPass:
    try:
        return LINT_PASSES[name]
    except KeyError as exc:
        available = ", ".join(sorted(LINT_PASSES))
        raise KeyError(f"Unknown lint pass '{name}'. Available passes: {available}.") from exc


def render_lint_test(lint_pass: LintPass, path: str, violations: Sequence[str]) -> str:
    description = f"{path} should pass {lint_pass.name}"
    message = f"{description}."
    if violations:
        message += "\n" + "\n".join(violations)
    directory = path.rsplit("/", 1)[0] if "/" in path else path
    return (
        f"module({json.dumps(f'{lint_pass.title} - {directory}')});\n"
        f"test({json.dumps(description)}, function() {{\n"
        f"  ok({'false' if violations else 'true'}, {json.dumps(message)});\n"
        "});\n"
    )


def lint_tree(tree: FileTree, *, linter: str, strict: bool = False) -> FileTree:
    """Return a tree of companion lint tests for every ``.js`` file in ``tree``."""

    lint_pass = get_lint_pass(linter)
    results: Dict[str, str] = {}
    failing = 0
    for path, source in tree.items():
        if not path.endswith(".js"):
            continue
        violations = lint_pass.check(source)
        if violations:
            failing += 1
            if strict:
                raise LintError(linter, [f"{path} {violation}" for violation in violations])
        results[lint_pass.companion_path(path)] = render_lint_test(lint_pass, path, violations)
    if failing:
        logger.info("%s: %d of %d file(s) in %s have violations", linter, failing, len(results), tree.label or "tree")
    return FileTree(results, label=f"{tree.label or 'tree'}:{linter}")


__all__ = ["LINT_PASSES", "LintPass", "get_lint_pass", "lint_tree", "render_lint_test"]
