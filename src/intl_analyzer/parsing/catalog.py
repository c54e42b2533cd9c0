"""Translation catalog reading and flattening.

Catalogs are nested mappings whose leaves are strings::

    {"foo": {"bar": "Hello"}}   ->   {"foo.bar": "Hello"}

``.json`` files are read with :mod:`json`, ``.yaml`` / ``.yml`` files with
PyYAML. Any leaf that is not a string (numbers, lists, null, ...) is fatal.
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Callable, Dict, Iterable, Iterator, Tuple

import yaml

from intl_analyzer.core import filesystem
from intl_analyzer.domain.models import CatalogDocument, CatalogFormat, CatalogKeyMap, add_key
from intl_analyzer.parsing.errors import InvalidCatalogValueError, ParseError

__all__ = [
    "catalog_format",
    "parse_catalog",
    "read_catalog",
    "iter_translations",
    "flatten_catalog",
    "unflatten_catalog",
    "read_catalogs",
    "collect_catalog_keys",
    "analyze_catalogs",
]

_FORMATS: Dict[str, CatalogFormat] = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}

_BOOL_TAG = "tag:yaml.org,2002:bool"


class CatalogLoader(yaml.SafeLoader):
    """Safe loader with YAML 1.2 scalars for catalog documents.

    Only ``true`` / ``false`` are booleans (``yes``, ``no``, ``on`` and ``off``
    stay text) and mapping keys keep their source text, so ``no:`` is the key
    ``"no"`` and ``1:`` is ``"1"``.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping: Dict[str, Any] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark, "found a non-scalar key", key_node.start_mark
                )
            mapping[key_node.value] = self.construct_object(value_node, deep=deep)
        return mapping


CatalogLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
CatalogLoader.add_implicit_resolver(
    _BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)


def catalog_format(path: str) -> CatalogFormat:
    ext = os.path.splitext(path)[1].lower()
    try:
        return _FORMATS[ext]
    except KeyError:
        raise ParseError(f"Unsupported catalog format {ext!r}", path=path) from None


def parse_catalog(content: str, path: str) -> CatalogDocument:
    fmt = catalog_format(path)
    try:
        if fmt == "json":
            tree = json.loads(content)
        else:
            tree = yaml.load(content, Loader=CatalogLoader)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc.msg}", path=path, line=exc.lineno, column=exc.colno) from exc
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        raise ParseError(f"Invalid YAML: {exc}", path=path, line=line, column=column) from exc
    if tree is None and fmt == "yaml":
        tree = {}
    if not isinstance(tree, dict):
        raise ParseError(
            f"Catalog root must be a mapping, got {type(tree).__name__}", path=path
        )
    return CatalogDocument(path=path, format=fmt, tree=tree)


def read_catalog(
    root_dir: str, path: str, *, read_file: Callable[[str], str] = filesystem.read_text
) -> CatalogDocument:
    return parse_catalog(read_file(os.path.join(root_dir, path)), path)


def iter_translations(tree: Dict[str, Any], path: str, prefix: str = "") -> Iterator[Tuple[str, str]]:
    """Yield ``(dotted key, value)`` for every string leaf of ``tree``."""
    for key, value in tree.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, str):
            yield full_key, value
        elif isinstance(value, dict):
            yield from iter_translations(value, path, f"{full_key}.")
        else:
            raise InvalidCatalogValueError(full_key, path, value)


def flatten_catalog(tree: Dict[str, Any], path: str = "<memory>") -> Dict[str, str]:
    return dict(iter_translations(tree, path))


def unflatten_catalog(flat: Dict[str, str]) -> Dict[str, Any]:
    """Rebuild the nested mapping for dotted keys (inverse of flattening)."""
    tree: Dict[str, Any] = {}
    for key, value in flat.items():
        node = tree
        *parents, leaf = key.split(".")
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return tree


def read_catalogs(
    root_dir: str,
    file_paths: Iterable[str],
    *,
    read_file: Callable[[str], str] = filesystem.read_text,
) -> Dict[str, CatalogDocument]:
    return {path: read_catalog(root_dir, path, read_file=read_file) for path in file_paths}


def collect_catalog_keys(documents: Iterable[CatalogDocument]) -> CatalogKeyMap:
    existing: CatalogKeyMap = {}
    for document in documents:
        for key, _value in iter_translations(document.tree, document.path):
            add_key(existing, key, document.path)
    return existing


def analyze_catalogs(
    root_dir: str,
    file_paths: Iterable[str],
    *,
    read_file: Callable[[str], str] = filesystem.read_text,
) -> CatalogKeyMap:
    """Read catalogs into a key -> defining files map."""
    return collect_catalog_keys(read_catalogs(root_dir, file_paths, read_file=read_file).values())
