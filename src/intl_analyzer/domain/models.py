"""Domain models shared by the extraction, reconciliation and fix steps."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Set, Tuple

from intl_analyzer.config import settings

# key -> files referencing (or defining) it
KeyMap = Dict[str, Set[str]]
UsedKeyMap = KeyMap
CatalogKeyMap = KeyMap

CatalogFormat = Literal["json", "yaml"]


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    """Per-run analysis options, resolved once from the configuration file."""

    extensions: Tuple[str, ...] = settings.DEFAULT_EXTENSIONS
    parser_plugins: Tuple[str, ...] = ()
    helpers: Tuple[str, ...] = settings.DEFAULT_HELPERS
    analyze_concat_expression: bool = False
    translation_files: Tuple[str, ...] = settings.DEFAULT_TRANSLATION_FILES
    external_paths: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    options: AnalysisOptions = field(default_factory=AnalysisOptions)
    whitelist: Tuple[re.Pattern[str], ...] = ()
    error_on_unused_whitelist_entries: bool = False


@dataclass(slots=True)
class CatalogDocument:
    """A parsed catalog file. ``tree`` is owned by a single run."""

    path: str
    format: CatalogFormat
    tree: Dict[str, Any]


@dataclass(slots=True)
class Diagnostics:
    missing: CatalogKeyMap = field(default_factory=dict)
    unused: CatalogKeyMap = field(default_factory=dict)
    unused_whitelist_entries: Tuple[re.Pattern[str], ...] = ()
    used_whitelist_entries: Set[re.Pattern[str]] = field(default_factory=set)

    def has_errors(self, *, fix: bool = False) -> bool:
        if self.missing:
            return True
        return bool(self.unused) and not fix


def add_key(target: KeyMap, key: str, path: Optional[str]) -> None:
    files = target.setdefault(key, set())
    if path is not None:
        files.add(path)
