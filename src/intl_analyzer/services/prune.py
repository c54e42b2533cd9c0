"""Fix mode: remove unused translations from catalog documents.

Trees are never modified in place; every removal returns a rebuilt mapping
and the caller decides what to do with it. Writing is delegated to an
injected ``writer(path, content)`` callable.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List

import yaml

from intl_analyzer.domain.models import CatalogDocument, CatalogKeyMap

_log = logging.getLogger(__name__)

Writer = Callable[[str, str], None]

__all__ = ["remove_translation_key", "serialize_catalog", "prune_catalogs"]


def remove_translation_key(tree: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return ``tree`` without ``key``; emptied parent mappings are dropped.

    A flat entry (``{"a.b": ...}``) is removed first; otherwise the dotted
    path is followed through nested mappings, trying every split so mixed
    layouts such as ``{"a": {"b.c": ...}}`` resolve too. Unknown keys leave
    the tree unchanged.
    """
    if key in tree:
        return {k: v for k, v in tree.items() if k != key}
    parts = key.split(".")
    for idx in range(1, len(parts)):
        head = ".".join(parts[:idx])
        child = tree.get(head)
        if not isinstance(child, dict):
            continue
        pruned = remove_translation_key(child, ".".join(parts[idx:]))
        if pruned == child:
            continue
        if pruned:
            return {k: (pruned if k == head else v) for k, v in tree.items()}
        return {k: v for k, v in tree.items() if k != head}
    return tree


def serialize_catalog(document: CatalogDocument, tree: Dict[str, Any] | None = None) -> str:
    tree = document.tree if tree is None else tree
    if document.format == "json":
        return json.dumps(tree, indent=2, ensure_ascii=False)
    return yaml.safe_dump(tree, sort_keys=False, allow_unicode=True, default_flow_style=False)


def prune_catalogs(
    documents: Iterable[CatalogDocument], unused: CatalogKeyMap, writer: Writer
) -> List[str]:
    """Remove the unused keys attributed to each document.

    ``writer`` is called once per document that actually changed; the list of
    those paths is returned. Documents keep referring to their original trees.
    """
    written: List[str] = []
    for document in documents:
        keys = [key for key, files in unused.items() if document.path in files]
        tree = document.tree
        for key in keys:
            tree = remove_translation_key(tree, key)
        if tree == document.tree:
            continue
        _log.info("Removing %d unused translations from %s", len(keys), document.path)
        writer(document.path, serialize_catalog(document, tree))
        written.append(document.path)
    return written
