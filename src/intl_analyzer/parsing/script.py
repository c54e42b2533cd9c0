"""JavaScript / TypeScript / JSX translation key extraction.

Sources are parsed with tree-sitter. The grammars accept decorators (both
placements), class fields, static blocks, dynamic ``import()`` and JSX out of
the box, so no parser plugins have to be switched on per file.

Recognised usages::

    t('key')                        this.intl.t('key')
    anything.t(cond ? 'a' : 'b')    formatMessage({ id: 'key' })
    intl.formatMessage({ id: 'key' })
    <FormattedMessage id="key" />   (JSX / TSX only)

Only string literals (or string-literal branches of a conditional) are
recorded; everything else is silently ignored.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable, Iterator, List, Literal, Optional, Set

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from intl_analyzer.parsing.errors import ParseError

_log = logging.getLogger(__name__)

Grammar = Literal["javascript", "typescript", "tsx"]

__all__ = [
    "Grammar",
    "parse_script",
    "walk",
    "node_text",
    "string_value",
    "unescape_sequence",
    "resolve_literal_keys",
    "extract_keys_from_tree",
    "extract_script_keys",
]

FORMAT_MESSAGE = "formatMessage"
INTL_OBJECT = "intl"
FORMATTED_MESSAGE_ELEMENT = "FormattedMessage"


@lru_cache(maxsize=None)
def _language(grammar: Grammar) -> Language:
    if grammar == "javascript":
        return Language(tree_sitter_javascript.language())
    if grammar == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if grammar == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    raise ValueError(f"Unknown grammar: {grammar}")


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk without recursion (deep trees are common in bundles)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _first_error(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


def parse_script(source: str, grammar: Grammar = "javascript") -> Tree:
    """Parse ``source``; any syntax error raises :class:`ParseError`."""
    tree = Parser(_language(grammar)).parse(source.encode("utf-8"))
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node) or tree.root_node
        row, column = bad.start_point
        what = f"missing {bad.type}" if bad.is_missing else "unexpected token"
        raise ParseError(f"Syntax error: {what}", line=row + 1, column=column + 1)
    return tree


def node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def unescape_sequence(sequence: str) -> str:
    """Cook a single JavaScript escape sequence such as ``\\n`` or ``\\u0041``."""
    body = sequence[1:]
    if not body:
        return ""
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    if body[0] in "\r\n\u2028\u2029":
        return ""  # line continuation
    try:
        if body.startswith("u{"):
            return chr(int(body[2:-1], 16))
        if body[0] in "ux" and len(body) > 1:
            return chr(int(body[1:], 16))
    except ValueError:
        return body
    return body


def string_value(node: Node) -> str:
    """Cooked value of a ``string`` node."""
    parts: List[str] = []
    for child in node.named_children:
        if child.type == "escape_sequence":
            parts.append(unescape_sequence(node_text(child)))
        elif child.type != "comment":
            parts.append(node_text(child))
    return "".join(parts)


def _arguments(node: Node) -> List[Node]:
    args = node.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [a for a in args.named_children if a.type != "comment"]


def _unwrap(node: Optional[Node]) -> Optional[Node]:
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        node = inner[0] if inner else None
    return node


def resolve_literal_keys(node: Optional[Node]) -> List[str]:
    """Keys from a string literal or the literal branches of a conditional."""
    node = _unwrap(node)
    if node is None:
        return []
    if node.type == "string":
        return [string_value(node)]
    if node.type == "ternary_expression":
        keys = []
        for name in ("consequence", "alternative"):
            branch = _unwrap(node.child_by_field_name(name))
            if branch is not None and branch.type == "string":
                keys.append(string_value(branch))
        return keys
    return []


def _is_translate_callee(callee: Optional[Node], helpers: Set[str]) -> bool:
    if callee is None:
        return False
    if callee.type == "identifier":
        return node_text(callee) in helpers
    if callee.type == "member_expression":
        prop = callee.child_by_field_name("property")
        return prop is not None and prop.type == "property_identifier" and node_text(prop) in helpers
    return False


def _is_format_message_callee(callee: Optional[Node]) -> bool:
    if callee is None:
        return False
    if callee.type == "identifier":
        return node_text(callee) == FORMAT_MESSAGE
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        return (
            obj is not None
            and prop is not None
            and obj.type == "identifier"
            and node_text(obj) == INTL_OBJECT
            and node_text(prop) == FORMAT_MESSAGE
        )
    return False


def _message_descriptor_keys(node: Optional[Node]) -> List[str]:
    node = _unwrap(node)
    if node is None or node.type != "object":
        return []
    keys: List[str] = []
    for prop in node.named_children:
        if prop.type != "pair":
            continue
        key = prop.child_by_field_name("key")
        if key is not None and key.type == "property_identifier" and node_text(key) == "id":
            keys.extend(resolve_literal_keys(prop.child_by_field_name("value")))
    return keys


def _call_keys(node: Node, helpers: Set[str]) -> List[str]:
    args = _arguments(node)
    if not args:
        return []
    callee = node.child_by_field_name("function")
    if _is_translate_callee(callee, helpers):
        return resolve_literal_keys(args[0])
    if _is_format_message_callee(callee):
        return _message_descriptor_keys(args[0])
    return []


def _jsx_attribute_keys(attribute: Node) -> List[str]:
    children = [c for c in attribute.named_children if c.type != "comment"]
    if len(children) < 2 or node_text(children[0]) != "id":
        return []
    value = children[-1]
    if value.type == "string":
        # JSX attribute strings are not escape-processed
        return [node_text(value)[1:-1]]
    if value.type == "jsx_expression":
        inner = [c for c in value.named_children if c.type != "comment"]
        return resolve_literal_keys(inner[0]) if inner else []
    return []


def _jsx_element_keys(node: Node) -> List[str]:
    name = node.child_by_field_name("name")
    if name is None or node_text(name) != FORMATTED_MESSAGE_ELEMENT:
        return []
    keys: List[str] = []
    for child in node.named_children:
        if child.type == "jsx_attribute":
            keys.extend(_jsx_attribute_keys(child))
    return keys


def extract_keys_from_tree(
    root: Node, helpers: Iterable[str] = ("t",), *, jsx: bool = False
) -> Set[str]:
    names = set(helpers)
    keys: Set[str] = set()
    for node in walk(root):
        if node.type == "call_expression":
            keys.update(_call_keys(node, names))
        elif jsx and node.type in ("jsx_opening_element", "jsx_self_closing_element"):
            keys.update(_jsx_element_keys(node))
    return keys


def extract_script_keys(
    source: str,
    *,
    grammar: Grammar = "javascript",
    helpers: Iterable[str] = ("t",),
    jsx: bool = False,
) -> Set[str]:
    """Parse ``source`` and return the translation keys referenced by it."""
    tree = parse_script(source, grammar)
    keys = extract_keys_from_tree(tree.root_node, helpers, jsx=jsx)
    _log.debug("%s source yielded %d keys", grammar, len(keys))
    return keys
