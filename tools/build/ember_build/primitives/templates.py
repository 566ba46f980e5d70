"""Inline template precompilation.

Templates embedded in scripts (``hbs`...` `` tagged literals or
``Ember.HTMLBars.compile("...")`` calls) and standalone ``.hbs`` files are
compiled to ``Ember.HTMLBars.template(function(context, env) {...})``
functions so the runtime bundle never needs the template compiler.

Supported syntax: ``{{path}}``, ``{{{path}}}`` (unescaped), ``{{! comment}}``
and the ``if`` / ``unless`` / ``each`` blocks with an optional ``{{else}}``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from ..errors import RenameCollisionError, TemplateSyntaxError
from ..trees import FileTree

logger = logging.getLogger(__name__)

BLOCK_HELPERS = ("if", "unless", "each")

_PATH = re.compile(r"^(?:this|[A-Za-z_$][\w$-]*(?:\.[A-Za-z_$][\w$-]*)*)$")
_INLINE_TEMPLATE = re.compile(
    r"\bhbs`(?P<tagged>(?:\\.|[^`\\])*)`"
    r"|Ember\.(?:HTMLBars|Handlebars)\.compile\(\s*(?P<quote>['\"])(?P<body>(?:\\.|(?!(?P=quote)).)*)(?P=quote)\s*\)",
    re.DOTALL,
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"', "`": "`", "0": "\0"}


@dataclass
class Text:
    value: str


@dataclass
class Mustache:
    path: str
    escaped: bool = True


@dataclass
class Block:
    helper: str
    path: str
    line: int
    body: List["Node"] = field(default_factory=list)
    inverse: Optional[List["Node"]] = None


Node = Union[Text, Mustache, Block]


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda match: _ESCAPES.get(match.group(1), match.group(1)), value, flags=re.DOTALL)


def _tokenize(source: str, *, path: Optional[str], line_offset: int) -> List[Tuple[str, str, int]]:
    tokens: List[Tuple[str, str, int]] = []
    position = 0
    while position < len(source):
        start = source.find("{{", position)
        if start == -1:
            tokens.append(("text", source[position:], 0))
            break
        if start > position:
            tokens.append(("text", source[position:start], 0))
        line = line_offset + source.count("\n", 0, start)
        triple = source.startswith("{{{", start)
        closer = "}}}" if triple else "}}"
        end = source.find(closer, start)
        if end == -1:
            raise TemplateSyntaxError("Unterminated mustache.", path=path, line=line)
        inner = source[start + len(closer) : end].strip()
        if not inner:
            raise TemplateSyntaxError("Empty mustache.", path=path, line=line)
        tokens.append(("raw" if triple else "tag", inner, line))
        position = end + len(closer)
    return tokens


def parse_template(source: str, *, path: Optional[str] = None, line_offset: int = 1) -> List[Node]:
    root: List[Node] = []
    stack: List[Block] = []

    def current() -> List[Node]:
        if not stack:
            return root
        block = stack[-1]
        return block.inverse if block.inverse is not None else block.body

    for kind, value, line in _tokenize(source, path=path, line_offset=line_offset):
        if kind == "text":
            current().append(Text(value))
            continue
        if kind == "raw":
            current().append(Mustache(_check_path(value, path, line), escaped=False))
            continue
        if value.startswith("!"):
            continue
        if value.startswith("#"):
            helper, _, argument = value[1:].partition(" ")
            if helper not in BLOCK_HELPERS:
                raise TemplateSyntaxError(f"Unknown block helper '{helper}'.", path=path, line=line)
            block = Block(helper=helper, path=_check_path(argument.strip(), path, line), line=line)
            current().append(block)
            stack.append(block)
            continue
        if value.startswith("/"):
            helper = value[1:].strip()
            if not stack:
                raise TemplateSyntaxError(f"Unexpected closing '{{{{/{helper}}}}}'.", path=path, line=line)
            if stack[-1].helper != helper:
                raise TemplateSyntaxError(
                    f"'{{{{/{helper}}}}}' does not match '{{{{#{stack[-1].helper}}}}}' opened on line {stack[-1].line}.",
                    path=path,
                    line=line,
                )
            stack.pop()
            continue
        if value == "else":
            if not stack or stack[-1].inverse is not None:
                raise TemplateSyntaxError("Unexpected '{{else}}'.", path=path, line=line)
            stack[-1].inverse = []
            continue
        current().append(Mustache(_check_path(value, path, line)))

    if stack:
        block = stack[-1]
        raise TemplateSyntaxError(f"Unclosed '{{{{#{block.helper}}}}}' block.", path=path, line=block.line)
    return root


def _check_path(value: str, path: Optional[str], line: int) -> str:
    if not _PATH.match(value):
        raise TemplateSyntaxError(f"Invalid expression '{value}'.", path=path, line=line)
    return value


def _emit(nodes: List[Node], indent: str, lines: List[str], depth: int = 0) -> None:
    context = "context" if depth == 0 else f"context{depth}"
    for node in nodes:
        if isinstance(node, Text):
            if node.value:
                lines.append(f"{indent}buffer.push({json.dumps(node.value)});")
        elif isinstance(node, Mustache):
            lookup = f"env.get({context}, {json.dumps(node.path)})"
            lines.append(f"{indent}buffer.push({'env.escape(' + lookup + ')' if node.escaped else lookup});")
        elif node.helper == "each":
            inner = f"context{depth + 1}"
            items = f"env.get({context}, {json.dumps(node.path)})"
            if node.inverse is not None:
                lines.append(f"{indent}if (env.isEmpty({items})) {{")
                _emit(node.inverse, indent + "  ", lines, depth)
                lines.append(f"{indent}}}")
            lines.append(f"{indent}env.each({items}, function({inner}) {{")
            _emit(node.body, indent + "  ", lines, depth + 1)
            lines.append(f"{indent}}});")
        else:
            test = f"env.truthy(env.get({context}, {json.dumps(node.path)}))"
            if node.helper == "unless":
                test = f"!{test}"
            lines.append(f"{indent}if ({test}) {{")
            _emit(node.body, indent + "  ", lines, depth)
            if node.inverse is not None:
                lines.append(f"{indent}}} else {{")
                _emit(node.inverse, indent + "  ", lines, depth)
            lines.append(f"{indent}}}")


def compile_template(source: str, *, path: Optional[str] = None, line_offset: int = 1) -> str:
    """Compile template ``source`` into a JavaScript template function expression."""

    nodes = parse_template(source, path=path, line_offset=line_offset)
    lines = ["Ember.HTMLBars.template(function(context, env) {", "  var buffer = [];"]
    _emit(nodes, "  ", lines)
    lines.append('  return buffer.join("");')
    lines.append("})")
    return "\n".join(lines)


def precompile_inline_templates(source: str, *, path: Optional[str] = None) -> str:
    """Replace every inline template in a script with its compiled function."""

    def replace(match: "re.Match[str]") -> str:
        line = source.count("\n", 0, match.start()) + 1
        body = match.group("tagged")
        if body is None:
            body = match.group("body")
        return compile_template(_unescape(body), path=path, line_offset=line)

    return _INLINE_TEMPLATE.sub(replace, source)


def precompile_tree(tree: FileTree) -> FileTree:
    """Precompile inline templates in ``.js`` files and turn ``.hbs`` files into template modules."""

    files: Dict[str, str] = {}
    templates: Dict[str, str] = {}
    for path, content in tree.items():
        if path.endswith(".hbs"):
            templates[path] = content
        elif path.endswith(".js"):
            files[path] = precompile_inline_templates(content, path=path)
        else:
            files[path] = content

    for path, content in templates.items():
        module_path = path[: -len(".hbs")] + ".js"
        if module_path in files:
            raise RenameCollisionError(f"Template '{path}' would overwrite script '{module_path}'.")
        files[module_path] = f"export default {compile_template(content, path=path)};\n"

    logger.debug("Precompiled templates in %s (%d template file(s))", tree.label or "tree", len(templates))
    return FileTree(files, label=tree.label)


__all__ = [
    "compile_template",
    "parse_template",
    "precompile_inline_templates",
    "precompile_tree",
]
