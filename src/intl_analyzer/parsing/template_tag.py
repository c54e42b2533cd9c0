"""Single-file components (``.gjs`` / ``.gts``) with ``<template>`` tags.

Each ``<template>...</template>`` region is replaced by a call to an
identifier imported from ``@ember/template-compiler`` so that the remaining
document is plain JavaScript / TypeScript. After parsing, every call bound to
that import is located and its template text analyzed as Handlebars. The
binding is checked lexically, so a local function that happens to be named
``template`` does not get its argument treated as markup.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from tree_sitter import Node

from intl_analyzer.config import settings
from intl_analyzer.parsing.errors import ParseError
from intl_analyzer.parsing.handlebars import extract_template_keys
from intl_analyzer.parsing.script import (
    Grammar,
    extract_keys_from_tree,
    node_text,
    parse_script,
    string_value,
    unescape_sequence,
    walk,
)

_log = logging.getLogger(__name__)

PLACEHOLDER = "template_3a9f0c2e6b1d4f57"

_OPEN_TAG_RE = re.compile(r"<template(?=[\s>])[^>]*>")
_CLOSE_TAG = "</template>"
_CLASS_HEAD_RE = re.compile(r"\bclass\b(?:\s+[\w$]+)?(?:\s+extends\s+[^{;]+?)?\s*$")
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_VALUE_END = frozenset("_$)]`\"'")
_TEMPLATE_KEYWORDS = ("return", "default", "export", "yield", "await")
_REGEX_KEYWORDS = {"return", "typeof", "case", "do", "else", "in", "instanceof", "new", "void", "yield", "await"}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)


@dataclass(slots=True)
class PreprocessedComponent:
    script: str
    templates: List[str] = field(default_factory=list)


def _escape_template_literal(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class _TemplateTagScanner:
    """Single pass over the source tracking strings, comments and braces."""

    def __init__(self, source: str):
        self.src = source
        self.pieces: List[str] = []
        self.templates: List[str] = []
        self.copied = 0
        # "`" template literal, "${" substitution, "class" body, "{" other block
        self.stack: List[str] = []
        self.last_sig = ""
        self.last_word = ""
        # a line break separates the last significant token from the cursor
        self.line_break = False

    def _line(self, pos: int) -> int:
        return self.src.count("\n", 0, pos) + 1

    def _skip_string(self, i: int) -> int:
        quote = self.src[i]
        j = i + 1
        while j < len(self.src):
            ch = self.src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == quote:
                return j + 1
            if ch == "\n":
                break
            j += 1
        raise ParseError("Unterminated string literal", line=self._line(i))

    def _skip_regex(self, i: int) -> int:
        j = i + 1
        in_class = False
        while j < len(self.src):
            ch = self.src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "\n":
                break
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                j += 1
                while j < len(self.src) and (self.src[j].isalnum() or self.src[j] in "_$"):
                    j += 1
                return j
            j += 1
        raise ParseError("Unterminated regular expression", line=self._line(i))

    def _regex_allowed(self) -> bool:
        return self.last_sig == "" or self.last_sig in _REGEX_PRECEDERS or self.last_word in _REGEX_KEYWORDS

    def _mark(self, sig: str, word: str = "") -> None:
        self.last_sig, self.last_word = sig, word
        self.line_break = False

    def _ends_value(self) -> bool:
        return self.last_sig.isalnum() or self.last_sig in _VALUE_END

    def _template_allowed(self) -> bool:
        if self.last_sig == "" or self.last_word in _TEMPLATE_KEYWORDS or self.line_break:
            return True
        return not self._ends_value()

    def _replace_template(self, i: int, open_match: re.Match) -> int:
        src = self.src
        depth = 1
        pos = open_match.end()
        while True:
            nxt_close = src.find(_CLOSE_TAG, pos)
            if nxt_close == -1:
                raise ParseError("Unclosed <template> tag", line=self._line(i))
            nested = _OPEN_TAG_RE.search(src, pos, nxt_close)
            if nested is not None:
                depth += 1
                pos = nested.end()
                continue
            depth -= 1
            if depth == 0:
                break
            pos = nxt_close + len(_CLOSE_TAG)
        content = src[open_match.end() : nxt_close]
        end = nxt_close + len(_CLOSE_TAG)
        call = f"{PLACEHOLDER}(`{_escape_template_literal(content)}`)"
        top = self.stack[-1] if self.stack else None
        # statement boundary through automatic semicolon insertion
        asi = self.line_break and self._ends_value() and self.last_word not in _TEMPLATE_KEYWORDS
        boundary = self.last_sig in ("", ";", "}") or asi
        if top == "class" and (boundary or self.last_sig == "{"):
            replacement = f"static {{ {call}; }}"
        elif top is None and boundary and self.last_word not in ("default", "return"):
            replacement = f"export default {call};"
        else:
            replacement = call
        if asi and replacement != call:
            replacement = ";" + replacement
        self.pieces.append(src[self.copied : i])
        self.pieces.append(replacement)
        self.copied = end
        self.templates.append(content)
        self._mark(")")
        return end

    def _skip_template_literal(self, i: int) -> int:
        """Scan template literal text from ``i``; stop after "`" or at "${"."""
        src = self.src
        j = i
        while j < len(src):
            ch = src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "`":
                self.stack.pop()
                self._mark("`")
                return j + 1
            if src.startswith("${", j):
                self.stack.append("${")
                self._mark("{")
                return j + 2
            j += 1
        raise ParseError("Unterminated template literal", line=self._line(i))

    def run(self) -> PreprocessedComponent:
        src = self.src
        i = 0
        while i < len(src):
            if self.stack and self.stack[-1] == "`":
                i = self._skip_template_literal(i)
                continue
            ch = src[i]
            if ch.isspace():
                if ch == "\n":
                    self.line_break = True
                i += 1
            elif src.startswith("//", i):
                end = src.find("\n", i)
                i = len(src) if end == -1 else end
            elif src.startswith("/*", i):
                end = src.find("*/", i + 2)
                if end == -1:
                    raise ParseError("Unterminated comment", line=self._line(i))
                if "\n" in src[i:end]:
                    self.line_break = True
                i = end + 2
            elif ch in "\"'":
                i = self._skip_string(i)
                self._mark(ch)
            elif ch == "`":
                self.stack.append("`")
                i += 1
            elif ch == "/" and self._regex_allowed():
                i = self._skip_regex(i)
                self._mark("/")
            elif ch == "<" and self._template_allowed() and _OPEN_TAG_RE.match(src, i):
                i = self._replace_template(i, _OPEN_TAG_RE.match(src, i))
            elif ch == "{":
                is_class = _CLASS_HEAD_RE.search(src, max(0, i - 400), i) is not None
                self.stack.append("class" if is_class else "{")
                self._mark("{")
                i += 1
            elif ch == "}":
                if self.stack:
                    self.stack.pop()
                self._mark("}")
                i += 1
            elif ch.isalnum() or ch in "_$":
                j = i
                while j < len(src) and (src[j].isalnum() or src[j] in "_$"):
                    j += 1
                self._mark(src[j - 1], src[i:j])
                i = j
            else:
                self._mark(ch)
                i += 1
        if self.stack and self.stack[-1] in ("`", "${"):
            raise ParseError("Unterminated template literal", line=self._line(len(src)))
        self.pieces.append(src[self.copied :])
        if self.templates:
            self.pieces.append(
                f'\nimport {{ {settings.TEMPLATE_COMPILER_EXPORT} as {PLACEHOLDER} }} '
                f'from "{settings.TEMPLATE_COMPILER_MODULE}";\n'
            )
        return PreprocessedComponent("".join(self.pieces), self.templates)


def preprocess_template_tags(source: str) -> PreprocessedComponent:
    """Rewrite ``<template>`` regions as template compiler calls.

    Line numbers of the surrounding code are preserved.
    """
    return _TemplateTagScanner(source).run()


# --- binding resolution --------------------------------------------------


def _import_bindings(root: Node) -> Dict[str, Tuple[str, str]]:
    """Map local name -> (module, imported name) for module-level imports."""
    bindings: Dict[str, Tuple[str, str]] = {}
    for stmt in root.named_children:
        if stmt.type != "import_statement":
            continue
        source = stmt.child_by_field_name("source")
        if source is None:
            continue
        module = string_value(source)
        for node in walk(stmt):
            if node.type == "import_specifier":
                name = node.child_by_field_name("name")
                alias = node.child_by_field_name("alias") or name
                if name is not None and alias is not None:
                    bindings[node_text(alias)] = (module, node_text(name))
            elif node.type == "import_clause":
                for child in node.named_children:
                    if child.type == "identifier":
                        bindings[node_text(child)] = (module, "default")
            elif node.type == "namespace_import":
                for child in node.named_children:
                    if child.type == "identifier":
                        bindings[node_text(child)] = (module, "*")
    return bindings


def _pattern_names(node: Optional[Node]) -> Iterator[str]:
    if node is None:
        return
    kind = node.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        yield node_text(node)
    elif kind in ("assignment_pattern", "object_assignment_pattern"):
        yield from _pattern_names(node.child_by_field_name("left"))
    elif kind == "pair_pattern":
        yield from _pattern_names(node.child_by_field_name("value"))
    elif kind in ("required_parameter", "optional_parameter"):
        yield from _pattern_names(node.child_by_field_name("pattern"))
    elif kind in ("object_pattern", "array_pattern", "rest_pattern", "formal_parameters"):
        for child in node.named_children:
            yield from _pattern_names(child)


_FUNCTION_TYPES = {
    "function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "generator_function_declaration",
    "arrow_function",
    "method_definition",
}
_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration", "class_declaration"}


def _declared_names(scope: Node) -> Set[str]:
    names: Set[str] = set()
    if scope.type in _FUNCTION_TYPES:
        names.update(_pattern_names(scope.child_by_field_name("parameters")))
        names.update(_pattern_names(scope.child_by_field_name("parameter")))
        if scope.type in ("function_expression", "function"):
            names.update(_pattern_names(scope.child_by_field_name("name")))
        return names
    if scope.type == "catch_clause":
        names.update(_pattern_names(scope.child_by_field_name("parameter")))
        return names
    if scope.type in ("for_statement", "for_in_statement"):
        for name in ("initializer", "left"):
            part = scope.child_by_field_name(name)
            if part is not None:
                for node in walk(part):
                    if node.type == "variable_declarator":
                        names.update(_pattern_names(node.child_by_field_name("name")))
        names.update(_pattern_names(scope.child_by_field_name("left")))
        return names
    if scope.type in ("statement_block", "class_static_block", "program", "switch_body"):
        for stmt in scope.named_children:
            if stmt.type in ("lexical_declaration", "variable_declaration"):
                for decl in stmt.named_children:
                    if decl.type == "variable_declarator":
                        names.update(_pattern_names(decl.child_by_field_name("name")))
            elif stmt.type in _DECLARATION_TYPES:
                names.update(_pattern_names(stmt.child_by_field_name("name")))
    return names


def is_template_compiler_call(call: Node, bindings: Dict[str, Tuple[str, str]]) -> bool:
    """True when ``call`` invokes the template compiler's ``template`` export."""
    callee = call.child_by_field_name("function")
    if callee is None or callee.type != "identifier":
        return False
    name = node_text(callee)
    expected = (settings.TEMPLATE_COMPILER_MODULE, settings.TEMPLATE_COMPILER_EXPORT)
    if bindings.get(name) != expected:
        return False
    scope = call.parent
    while scope is not None:
        if name in _declared_names(scope):
            return False
        scope = scope.parent
    return True


def _template_text(node: Node) -> Optional[str]:
    if node.type == "string":
        return string_value(node)
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        raw = node_text(node)[1:-1]
        return _ESCAPE_RE.sub(lambda m: unescape_sequence("\\" + m.group(1)), raw)
    return None


def embedded_templates(root: Node) -> List[str]:
    """Template texts passed to confirmed template compiler calls."""
    bindings = _import_bindings(root)
    found: List[str] = []
    for node in walk(root):
        if node.type != "call_expression" or not is_template_compiler_call(node, bindings):
            continue
        args = node.child_by_field_name("arguments")
        if args is None:
            continue
        first = next((a for a in args.named_children if a.type != "comment"), None)
        text = _template_text(first) if first is not None else None
        if text is not None:
            found.append(text)
    return found


def extract_component_keys(
    source: str,
    *,
    grammar: Grammar = "javascript",
    helpers: Iterable[str] = ("t",),
    analyze_concat: bool = False,
) -> Set[str]:
    helpers = tuple(helpers)
    component = preprocess_template_tags(source)
    tree = parse_script(component.script, grammar)
    keys = extract_keys_from_tree(tree.root_node, helpers)
    templates = embedded_templates(tree.root_node)
    _log.debug(
        "component: %d template tags, %d confirmed templates", len(component.templates), len(templates)
    )
    for template in templates:
        keys |= extract_template_keys(template, helpers, analyze_concat=analyze_concat)
    return keys
