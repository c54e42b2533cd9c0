"""Missing / unused translation reconciliation.

Both directions use the same :func:`diff` so whitelist usage is tracked
across the whole run: an entry only counts as unused when it suppressed
nothing in either direction.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence, Set

from intl_analyzer.domain.models import CatalogKeyMap, Diagnostics, KeyMap, UsedKeyMap

_log = logging.getLogger(__name__)

__all__ = ["diff", "merge_key_maps", "reconcile", "compile_whitelist"]


def compile_whitelist(patterns: Iterable[str | re.Pattern[str]]) -> tuple[re.Pattern[str], ...]:
    return tuple(p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns)


def diff(
    map_a: KeyMap,
    map_b: KeyMap,
    whitelist: Sequence[re.Pattern[str]] = (),
    used_whitelist: Optional[Set[re.Pattern[str]]] = None,
) -> KeyMap:
    """Keys of ``map_a`` (trimmed) absent from ``map_b`` and not whitelisted.

    The whitelist entry that suppressed a key is added to ``used_whitelist``.
    """
    result: KeyMap = {}
    for key, files in map_a.items():
        key = key.strip()
        if key in map_b:
            continue
        entry = next((w for w in whitelist if w.search(key)), None)
        if entry is not None:
            if used_whitelist is not None:
                used_whitelist.add(entry)
            _log.debug("%s whitelisted by /%s/", key, entry.pattern)
            continue
        result.setdefault(key, set()).update(files)
    return result


def merge_key_maps(*maps: KeyMap) -> KeyMap:
    merged: KeyMap = {}
    for key_map in maps:
        for key, files in key_map.items():
            merged.setdefault(key, set()).update(files)
    return merged


def reconcile(
    existing: CatalogKeyMap,
    used: UsedKeyMap,
    whitelist: Sequence[re.Pattern[str]] = (),
    *,
    external: Optional[CatalogKeyMap] = None,
) -> Diagnostics:
    """Compute unused (own catalogs only) and missing (own + external) keys."""
    used_whitelist: Set[re.Pattern[str]] = set()
    unused = diff(existing, used, whitelist, used_whitelist)
    all_existing = merge_key_maps(existing, external) if external else existing
    missing = diff(used, all_existing, whitelist, used_whitelist)
    unused_entries = tuple(w for w in whitelist if w not in used_whitelist)
    return Diagnostics(
        missing=missing,
        unused=unused,
        unused_whitelist_entries=unused_entries,
        used_whitelist_entries=used_whitelist,
    )
