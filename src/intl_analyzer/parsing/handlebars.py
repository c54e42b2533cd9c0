"""Handlebars / Glimmer template parsing and translation key extraction.

The parser builds a small typed syntax tree for the mustache layer of a
template. Surrounding HTML is kept as opaque text: translation helpers only
ever appear inside mustaches (including mustaches in attribute values and
element modifiers), so the tree does not model elements.

Recognised usages::

    {{t "some.key"}}
    {{my-component label=(t "other.key")}}
    {{t (if cond "yes.key" "no.key")}}
    {{t (concat "prefix." "suffix")}}   (only with concat analysis enabled)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Union

from intl_analyzer.parsing.errors import ParseError

__all__ = [
    "parse_template",
    "iter_nodes",
    "resolve_keys",
    "extract_template_keys",
]


# --- syntax tree ---------------------------------------------------------


@dataclass(slots=True)
class PathExpression:
    original: str
    data: bool = False


@dataclass(slots=True)
class StringLiteral:
    value: str


@dataclass(slots=True)
class NumberLiteral:
    value: float


@dataclass(slots=True)
class BooleanLiteral:
    value: bool


@dataclass(slots=True)
class NullLiteral:
    pass


@dataclass(slots=True)
class UndefinedLiteral:
    pass


@dataclass(slots=True)
class HashPair:
    key: str
    value: "Expression"


@dataclass(slots=True)
class Hash:
    pairs: List[HashPair] = field(default_factory=list)


@dataclass(slots=True)
class SubExpression:
    path: "Expression"
    params: List["Expression"] = field(default_factory=list)
    hash: Hash = field(default_factory=Hash)


@dataclass(slots=True)
class MustacheStatement:
    path: "Expression"
    params: List["Expression"] = field(default_factory=list)
    hash: Hash = field(default_factory=Hash)
    trusting: bool = False
    line: int = 0


@dataclass(slots=True)
class Block:
    body: List["Statement"] = field(default_factory=list)
    block_params: List[str] = field(default_factory=list)
    chained: bool = False


@dataclass(slots=True)
class BlockStatement:
    path: "Expression"
    params: List["Expression"] = field(default_factory=list)
    hash: Hash = field(default_factory=Hash)
    program: Block = field(default_factory=Block)
    inverse: Optional[Block] = None
    line: int = 0


@dataclass(slots=True)
class TextNode:
    chars: str


@dataclass(slots=True)
class MustacheCommentStatement:
    value: str


@dataclass(slots=True)
class Template:
    body: List["Statement"] = field(default_factory=list)


Literal = Union[StringLiteral, NumberLiteral, BooleanLiteral, NullLiteral, UndefinedLiteral]
Expression = Union[PathExpression, SubExpression, Literal]
Statement = Union[TextNode, MustacheStatement, BlockStatement, MustacheCommentStatement]
Node = Union[Template, Block, Statement, Expression, Hash, HashPair]


# --- expression lexer ----------------------------------------------------

_SEGMENT = r"(?:\[[^\]]*\]|\.\.|[^\s!\"#%&'()*+,./;<=>@\[\\\]^`{|}~]+)"

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<open_params>as\s+\|)
  | (?P<pipe>\|)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<equals>=)
  | (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
  | (?P<number>-?\d+(?:\.\d+)?(?=[\s)|=]|$))
  | (?P<path>@?SEGMENT(?:[./]SEGMENT)*)
    """.replace("SEGMENT", _SEGMENT),
    re.VERBOSE | re.DOTALL,
)


@dataclass(slots=True)
class _Token:
    kind: str
    text: str


def _tokenize(source: str, line: int) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None or m.end() == pos:
            raise ParseError(f"Unexpected character {source[pos]!r} in mustache", line=line)
        kind = m.lastgroup or ""
        if kind != "ws":
            tokens.append(_Token(kind, m.group()))
        pos = m.end()
    return tokens


def _unquote(text: str) -> str:
    quote = text[0]
    return text[1:-1].replace("\\" + quote, quote)


class _ExpressionParser:
    def __init__(self, tokens: Sequence[_Token], line: int):
        self.tokens = tokens
        self.index = 0
        self.line = line

    def _peek(self, offset: int = 0) -> Optional[_Token]:
        idx = self.index + offset
        return self.tokens[idx] if idx < len(self.tokens) else None

    def _take(self) -> _Token:
        tok = self._peek()
        if tok is None:
            raise ParseError("Unexpected end of mustache", line=self.line)
        self.index += 1
        return tok

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    def parse_call(self, closing: Optional[str] = None):
        """Parse ``path param* hash?`` up to ``closing`` (or the end)."""
        path = self.parse_expression()
        params: List[Expression] = []
        pairs: List[HashPair] = []
        while True:
            tok = self._peek()
            if tok is None or tok.kind == closing or tok.kind == "open_params":
                break
            nxt = self._peek(1)
            if tok.kind == "path" and nxt is not None and nxt.kind == "equals":
                self.index += 2
                pairs.append(HashPair(tok.text, self.parse_expression()))
            elif pairs:
                raise ParseError("Positional argument after hash argument", line=self.line)
            else:
                params.append(self.parse_expression())
        return path, params, Hash(pairs)

    def parse_block_params(self) -> List[str]:
        tok = self._peek()
        if tok is None or tok.kind != "open_params":
            return []
        self.index += 1
        names: List[str] = []
        while True:
            tok = self._take()
            if tok.kind == "pipe":
                return names
            if tok.kind != "path":
                raise ParseError(f"Invalid block parameter {tok.text!r}", line=self.line)
            names.append(tok.text)

    def parse_expression(self) -> Expression:
        tok = self._take()
        if tok.kind == "string":
            return StringLiteral(_unquote(tok.text))
        if tok.kind == "number":
            return NumberLiteral(float(tok.text))
        if tok.kind == "path":
            if tok.text in ("true", "false"):
                return BooleanLiteral(tok.text == "true")
            if tok.text == "null":
                return NullLiteral()
            if tok.text == "undefined":
                return UndefinedLiteral()
            return PathExpression(tok.text, data=tok.text.startswith("@"))
        if tok.kind == "lparen":
            path, params, hash_ = self.parse_call(closing="rparen")
            end = self._take()
            if end.kind != "rparen":
                raise ParseError("Unclosed sub-expression", line=self.line)
            return SubExpression(path, params, hash_)
        raise ParseError(f"Unexpected token {tok.text!r}", line=self.line)


# --- statement scanner ---------------------------------------------------

_ELSE_RE = re.compile(r"^else(?:\s+|$)")


@dataclass(slots=True)
class _Tag:
    kind: str  # mustache | comment | block | inverse_block | else | close
    line: int
    path: Optional[Expression] = None
    params: List[Expression] = field(default_factory=list)
    hash: Hash = field(default_factory=Hash)
    block_params: List[str] = field(default_factory=list)
    trusting: bool = False
    value: str = ""


def _path_name(expr: Optional[Expression]) -> str:
    if isinstance(expr, PathExpression):
        return expr.original
    if isinstance(expr, StringLiteral):
        return expr.value
    return type(expr).__name__


class _TemplateParser:
    def __init__(self, source: str):
        self.source = source
        self.pos = 0

    def _line(self, pos: int) -> int:
        return self.source.count("\n", 0, pos) + 1

    def _find_open(self, start: int) -> int:
        """Index of the next unescaped ``{{`` outside HTML comments, or -1."""
        src = self.source
        pos = start
        while True:
            idx = src.find("{{", pos)
            comment = src.find("<!--", pos)
            if idx == -1:
                return -1
            if comment != -1 and comment < idx:
                end = src.find("-->", comment + 4)
                if end == -1:
                    raise ParseError("Unclosed HTML comment", line=self._line(comment))
                pos = end + 3
                continue
            if idx > 0 and src[idx - 1] == "\\" and not (idx > 1 and src[idx - 2] == "\\"):
                pos = idx + 2
                continue
            return idx

    def _find_close(self, start: int, closing: str, line: int) -> int:
        src = self.source
        i = start
        while i < len(src):
            ch = src[i]
            if ch in "\"'":
                j = i + 1
                while j < len(src) and src[j] != ch:
                    j += 2 if src[j] == "\\" else 1
                if j >= len(src):
                    raise ParseError("Unterminated string literal", line=line)
                i = j + 1
                continue
            if src.startswith(closing, i):
                return i
            i += 1
        raise ParseError("Unterminated mustache", line=line)

    def next_tag(self) -> tuple[str, Optional[_Tag]]:
        """Return the text preceding the next mustache and the parsed tag."""
        src = self.source
        idx = self._find_open(self.pos)
        if idx == -1:
            text = src[self.pos :]
            self.pos = len(src)
            return text, None
        text = src[self.pos : idx]
        line = self._line(idx)
        triple = src.startswith("{{{", idx)
        inner_start = idx + (3 if triple else 2)
        if src.startswith("~", inner_start):
            inner_start += 1

        if src.startswith("!--", inner_start):
            m = re.compile(r"--~?}}").search(src, inner_start + 3)
            if m is None:
                raise ParseError("Unterminated comment", line=line)
            self.pos = m.end()
            return text, _Tag("comment", line, value=src[inner_start + 3 : m.start()])
        if src.startswith("!", inner_start):
            end = src.find("}}", inner_start)
            if end == -1:
                raise ParseError("Unterminated comment", line=line)
            self.pos = end + 2
            return text, _Tag("comment", line, value=src[inner_start + 1 : end].rstrip("~"))

        closing = "}}}" if triple else "}}"
        end = self._find_close(inner_start, closing, line)
        self.pos = end + len(closing)
        inner = src[inner_start:end]
        if inner.endswith("~"):
            inner = inner[:-1]
        return text, self._classify(inner.strip(), line, triple)

    def _classify(self, inner: str, line: int, triple: bool) -> _Tag:
        if not inner:
            raise ParseError("Empty mustache", line=line)
        sigil = inner[0]
        if sigil == ">" or inner.startswith("#>"):
            raise ParseError("Handlebars partials are not supported", line=line)
        if inner.startswith("#*"):
            raise ParseError("Handlebars decorators are not supported", line=line)
        if sigil == "/":
            parser = _ExpressionParser(_tokenize(inner[1:], line), line)
            path = parser.parse_expression()
            if not parser.at_end():
                raise ParseError("Unexpected content in closing block", line=line)
            return _Tag("close", line, path=path)
        if sigil == "^" and not inner[1:].strip():
            return _Tag("else", line)
        if _ELSE_RE.match(inner):
            rest = inner[4:].strip()
            if not rest:
                return _Tag("else", line)
            tag = self._call_tag("else", rest, line)
            return tag
        if sigil == "#":
            return self._call_tag("block", inner[1:], line)
        if sigil == "^":
            return self._call_tag("inverse_block", inner[1:], line)
        if sigil == "&":
            tag = self._call_tag("mustache", inner[1:], line)
            tag.trusting = True
            return tag
        tag = self._call_tag("mustache", inner, line)
        tag.trusting = triple
        return tag

    def _call_tag(self, kind: str, content: str, line: int) -> _Tag:
        parser = _ExpressionParser(_tokenize(content, line), line)
        path, params, hash_ = parser.parse_call()
        block_params = parser.parse_block_params()
        if not parser.at_end():
            raise ParseError("Unexpected content after block parameters", line=line)
        if block_params and kind == "mustache":
            raise ParseError("Block parameters are only valid on blocks", line=line)
        return _Tag(kind, line, path=path, params=params, hash=hash_, block_params=block_params)

    def parse_statements(self, in_block: bool) -> tuple[List[Statement], Optional[_Tag]]:
        body: List[Statement] = []
        while True:
            text, tag = self.next_tag()
            if text:
                body.append(TextNode(text))
            if tag is None:
                return body, None
            if tag.kind == "comment":
                body.append(MustacheCommentStatement(tag.value))
            elif tag.kind == "mustache":
                body.append(
                    MustacheStatement(tag.path, tag.params, tag.hash, tag.trusting, tag.line)
                )
            elif tag.kind in ("block", "inverse_block"):
                node, end = self.parse_block(tag)
                if end.kind != "close" or _path_name(end.path) != _path_name(tag.path):
                    raise ParseError(
                        f"{_path_name(tag.path)} doesn't match {_path_name(end.path)}",
                        line=end.line,
                    )
                body.append(node)
            elif not in_block:
                what = "{{else}}" if tag.kind == "else" else f"{{{{/{_path_name(tag.path)}}}}}"
                raise ParseError(f"Unexpected {what} outside of a block", line=tag.line)
            else:
                return body, tag

    def parse_block(self, open_tag: _Tag) -> tuple[BlockStatement, _Tag]:
        name = _path_name(open_tag.path)
        body, end = self.parse_statements(True)
        if end is None:
            raise ParseError(f"Unclosed block '{name}'", line=open_tag.line)
        program = Block(body, open_tag.block_params)
        inverse: Optional[Block] = None
        if end.kind == "else":
            if end.path is not None:
                chained, end = self.parse_block(end)
                inverse = Block([chained], chained=True)
            else:
                inverse_body, end = self.parse_statements(True)
                if end is None:
                    raise ParseError(f"Unclosed block '{name}'", line=open_tag.line)
                if end.kind == "else":
                    raise ParseError(f"Multiple {{{{else}}}} in block '{name}'", line=end.line)
                inverse = Block(inverse_body)
        if open_tag.kind == "inverse_block":
            program, inverse = inverse or Block(), program
        node = BlockStatement(
            open_tag.path, open_tag.params, open_tag.hash, program, inverse, open_tag.line
        )
        return node, end


def parse_template(source: str) -> Template:
    """Parse template markup into a :class:`Template` (raises :class:`ParseError`)."""
    body, _ = _TemplateParser(source).parse_statements(False)
    return Template(body)


# --- traversal -----------------------------------------------------------


def _children(node: Node) -> Iterable[Node]:
    if isinstance(node, (Template, Block)):
        return node.body
    if isinstance(node, (MustacheStatement, SubExpression)):
        return [node.path, *node.params, node.hash]
    if isinstance(node, BlockStatement):
        children: List[Node] = [node.path, *node.params, node.hash, node.program]
        if node.inverse is not None:
            children.append(node.inverse)
        return children
    if isinstance(node, Hash):
        return node.pairs
    if isinstance(node, HashPair):
        return [node.value]
    return ()


def iter_nodes(node: Node) -> Iterator[Node]:
    """Depth-first pre-order walk over every node of the tree."""
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(_children(current))))


# --- key resolution ------------------------------------------------------


def _call_name(node: Union[MustacheStatement, SubExpression]) -> Optional[str]:
    return node.path.original if isinstance(node.path, PathExpression) else None


def resolve_keys(node: Optional[Expression], *, analyze_concat: bool = False) -> List[str]:
    """Return the literal keys an argument expression can evaluate to.

    Only string literals, ``(if ...)`` and (optionally) ``(concat ...)`` are
    followed; any other expression yields nothing.
    """
    if isinstance(node, StringLiteral):
        return [node.value]
    if not isinstance(node, SubExpression):
        return []
    name = _call_name(node)
    if name == "if":
        params = node.params
        consequent = resolve_keys(params[1], analyze_concat=analyze_concat) if len(params) > 1 else []
        if len(params) > 2:
            alternate = resolve_keys(params[2], analyze_concat=analyze_concat)
        else:
            alternate = [""]
        return consequent + alternate
    if name == "concat" and analyze_concat:
        candidates = [""]
        for param in node.params:
            fragments = resolve_keys(param, analyze_concat=analyze_concat)
            if not fragments:
                return []
            candidates = [prefix + fragment for prefix in candidates for fragment in fragments]
        return candidates
    return []


def extract_keys_from_tree(
    tree: Template, helpers: Iterable[str] = ("t",), *, analyze_concat: bool = False
) -> Set[str]:
    names = set(helpers)
    keys: Set[str] = set()
    for node in iter_nodes(tree):
        if not isinstance(node, (MustacheStatement, SubExpression)):
            continue
        if _call_name(node) not in names or not node.params:
            continue
        keys.update(resolve_keys(node.params[0], analyze_concat=analyze_concat))
    return keys


def extract_template_keys(
    source: str, helpers: Iterable[str] = ("t",), *, analyze_concat: bool = False
) -> Set[str]:
    """Parse ``source`` and collect the translation keys it references."""
    return extract_keys_from_tree(parse_template(source), helpers, analyze_concat=analyze_concat)
