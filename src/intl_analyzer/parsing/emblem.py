"""Emblem (indentation based) templates transpiled to Handlebars markup.

Only the constructs that matter for locating helper calls are modelled:
elements with ``#id`` / ``.class`` shorthand and attributes, text lines,
mustache lines (``= expr``, ``== expr`` and bare helper/component lines),
nested blocks with ``else`` / ``else if`` and comments. The output is plain
Handlebars text which is then analyzed like any ``.hbs`` file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from intl_analyzer.parsing.errors import ParseError
from intl_analyzer.parsing.handlebars import extract_template_keys

_log = logging.getLogger(__name__)

HTML_TAGS = frozenset(
    """
    a abbr address area article aside audio b base bdi bdo blockquote body br button
    canvas caption cite code col colgroup data datalist dd del details dfn dialog div dl
    dt em embed fieldset figcaption figure footer form h1 h2 h3 h4 h5 h6 head header hr
    html i iframe img input ins kbd label legend li link main map mark meta meter nav
    noscript object ol optgroup option output p param picture pre progress q rp rt ruby
    s samp script section select small source span strong style sub summary sup svg table
    tbody td template textarea tfoot th thead time title tr track u ul var video wbr
    """.split()
)
VOID_TAGS = frozenset("area base br col embed hr img input link meta param source track wbr".split())

_ELEMENT_RE = re.compile(r"^(?:%([\w:-]+)|([a-z][\w:-]*))?((?:[#.][\w-]+)*)(.*)$", re.DOTALL)
_ATTR_RE = re.compile(r"([\w:@-]+)=")
_INTERPOLATION_RE = re.compile(r"#\{(.*?)\}")


@dataclass(slots=True)
class _Line:
    indent: int
    content: str
    lineno: int
    children: List["_Line"] = field(default_factory=list)


def _build_tree(source: str) -> _Line:
    root = _Line(indent=-1, content="", lineno=0)
    stack = [root]
    for lineno, raw in enumerate(source.splitlines(), start=1):
        if not raw.strip():
            continue
        indent = len(raw) - len(raw.lstrip(" \t"))
        # text blocks swallow everything indented below them
        if stack[-1].content[:1] in ("|", "'") and indent > stack[-1].indent:
            stack[-1].children.append(_Line(indent, raw.strip(), lineno))
            continue
        while indent <= stack[-1].indent:
            stack.pop()
        parent = stack[-1]
        if parent.children and parent.children[-1].indent != indent:
            raise ParseError("Inconsistent indentation", line=lineno)
        node = _Line(indent, raw.strip(), lineno)
        parent.children.append(node)
        stack.append(node)
    return root


def _interpolate(text: str) -> str:
    return _INTERPOLATION_RE.sub(lambda m: "{{" + m.group(1) + "}}", text)


def _balanced(text: str, start: int, lineno: int) -> int:
    """Index just past the parenthesised group opening at ``start``."""
    depth = 0
    quote: Optional[str] = None
    for idx in range(start, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx + 1
    raise ParseError("Unbalanced parentheses", line=lineno)


def _quoted_end(text: str, start: int, lineno: int) -> int:
    quote = text[start]
    end = text.find(quote, start + 1)
    if end == -1:
        raise ParseError("Unterminated string", line=lineno)
    return end + 1


class _Renderer:
    def __init__(self) -> None:
        self.out: List[str] = []

    def render_children(self, children: List[_Line]) -> None:
        idx = 0
        while idx < len(children):
            node = children[idx]
            idx += 1
            if _is_mustache(node) and node.children:
                # collect trailing else / else if siblings into the same block
                branches: List[_Line] = []
                while idx < len(children) and _is_else(children[idx]):
                    branches.append(children[idx])
                    idx += 1
                self.render_block(node, branches)
            elif _is_else(node):
                raise ParseError("Unexpected else", line=node.lineno)
            else:
                self.render_node(node)

    def render_node(self, node: _Line) -> None:
        content = node.content
        if content.startswith("/"):
            return
        if content.startswith(("|", "'")):
            text = content[1:].lstrip(" ")
            if content.startswith("'"):
                text += " "
            self.out.append(_interpolate(text))
            for child in node.children:
                self.out.append("\n" + _interpolate(child.content))
            self.out.append("\n")
            return
        if content.startswith("<"):
            self.out.append(_interpolate(content) + "\n")
            self.render_children(node.children)
            return
        if content == "doctype html" or content.startswith("doctype "):
            self.out.append("<!DOCTYPE html>\n")
            return
        if _is_mustache(node):
            self.out.append(_mustache(content) + "\n")
            self.render_children(node.children)
            return
        self.render_element(node)

    def render_block(self, node: _Line, branches: List[_Line]) -> None:
        expr = _mustache_expression(node.content)
        name = expr.split(None, 1)[0]
        self.out.append("{{#" + expr + "}}\n")
        self.render_children(node.children)
        for branch in branches:
            self.out.append("{{" + branch.content + "}}\n")
            self.render_children(branch.children)
        self.out.append("{{/" + name + "}}\n")

    def render_element(self, node: _Line) -> None:
        m = _ELEMENT_RE.match(node.content)
        if m is None:  # pragma: no cover - the pattern matches any string
            raise ParseError("Invalid element", line=node.lineno)
        tag = m.group(1) or m.group(2) or "div"
        shorthand = m.group(3) or ""
        rest = m.group(4).strip()
        ids = [s[1:] for s in re.findall(r"#[\w-]+", shorthand)]
        classes = [s[1:] for s in re.findall(r"\.[\w-]+", shorthand)]
        attrs: List[str] = []
        if ids:
            attrs.append(f'id="{ids[-1]}"')
        if classes:
            attrs.append('class="' + " ".join(classes) + '"')
        inline = self._parse_attributes(rest, attrs, node.lineno)
        open_tag = "<" + " ".join([tag, *attrs]) + ">"
        self.out.append(open_tag)
        if inline:
            self.out.append(inline)
        if node.children:
            self.out.append("\n")
            self.render_children(node.children)
        if tag not in VOID_TAGS:
            self.out.append(f"</{tag}>")
        self.out.append("\n")

    def _parse_attributes(self, rest: str, attrs: List[str], lineno: int) -> str:
        """Consume ``key=value`` pairs into ``attrs``; return inline content."""
        pos = 0
        while pos < len(rest):
            if rest[pos].isspace():
                pos += 1
                continue
            if rest.startswith("==", pos):
                return "{{{" + rest[pos + 2 :].strip() + "}}}"
            if rest.startswith("=", pos):
                return "{{" + rest[pos + 1 :].strip() + "}}"
            if rest.startswith("{{", pos):
                end = rest.find("}}", pos)
                if end == -1:
                    raise ParseError("Unterminated mustache", line=lineno)
                attrs.append(rest[pos : end + 2])
                pos = end + 2
                continue
            m = _ATTR_RE.match(rest, pos)
            if m is None:
                return _interpolate(rest[pos:].lstrip("| "))
            key = m.group(1)
            start = m.end()
            if start < len(rest) and rest[start] in "\"'":
                end = _quoted_end(rest, start, lineno)
                attrs.append(f'{key}="{_interpolate(rest[start + 1 : end - 1])}"')
            elif start < len(rest) and rest[start] == "(":
                end = _balanced(rest, start, lineno)
                attrs.append(f"{key}={{{{{rest[start + 1 : end - 1]}}}}}")
            else:
                end = start
                while end < len(rest) and not rest[end].isspace():
                    end += 1
                attrs.append(f"{key}={{{{{rest[start:end]}}}}}")
            pos = end
        return ""


def _is_else(node: _Line) -> bool:
    return node.content == "else" or node.content.startswith("else ")


def _is_mustache(node: _Line) -> bool:
    content = node.content
    if content.startswith(("=", "|", "'", "/", "<", "%", "#", ".")):
        return content.startswith("=")
    if _is_else(node) or content.startswith("doctype "):
        return False
    word = re.split(r"[\s#.=]", content, maxsplit=1)[0]
    return word not in HTML_TAGS


def _mustache_expression(content: str) -> str:
    return content.lstrip("=").strip()


def _mustache(content: str) -> str:
    if content.startswith("=="):
        return "{{{" + content[2:].strip() + "}}}"
    return "{{" + _mustache_expression(content) + "}}"


def compile_emblem(source: str) -> str:
    """Return the Handlebars equivalent of an Emblem document."""
    renderer = _Renderer()
    renderer.render_children(_build_tree(source).children)
    return "".join(renderer.out)


def extract_emblem_keys(
    source: str, helpers: Iterable[str] = ("t",), *, analyze_concat: bool = False
) -> Set[str]:
    hbs = compile_emblem(source)
    _log.debug("emblem compiled to %d characters of handlebars", len(hbs))
    return extract_template_keys(hbs, helpers, analyze_concat=analyze_concat)
