"""Project configuration loading.

The analyzer reads ``config/intl-analyzer.yml`` (overridable through the
``INTL_ANALYZER_CONFIG`` environment variable) from the project root::

    whitelist:
      - '^legacy\\.'
    error_on_unused_whitelist_entries: true
    analyze_concat_expression: true
    external_paths: ['my-addon', '@scope/*']
    translation_files: ['**/*.json']
    extensions: ['.ts', '.tsx']
    parser_plugins: ['typescript']
    helpers: ['t-html']

A missing file yields the defaults.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Tuple

import yaml

from intl_analyzer.config import settings
from intl_analyzer.domain.models import AnalysisOptions, AnalyzerConfig
from intl_analyzer.parsing.errors import ConfigError
from intl_analyzer.services.reconcile import compile_whitelist

_log = logging.getLogger(__name__)

_LIST_KEYS = (
    "whitelist",
    "external_paths",
    "translation_files",
    "extensions",
    "parser_plugins",
    "helpers",
)
_BOOL_KEYS = ("error_on_unused_whitelist_entries", "analyze_concat_expression")
KNOWN_KEYS = frozenset(_LIST_KEYS + _BOOL_KEYS)


def _string_list(raw: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = raw.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings", context={"key": key})
    return tuple(value)


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _merge_unique(*groups: Tuple[str, ...]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return tuple(seen)


def build_config(raw: Dict[str, Any] | None) -> AnalyzerConfig:
    """Validate a raw configuration mapping into an :class:`AnalyzerConfig`."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping")
    for key in sorted(set(raw) - KNOWN_KEYS):
        _log.warning("Ignoring unknown configuration key %r", key)
    for key in _BOOL_KEYS:
        if key in raw and not isinstance(raw[key], bool):
            raise ConfigError(f"'{key}' must be a boolean", context={"key": key})

    try:
        whitelist = compile_whitelist(_string_list(raw, "whitelist"))
    except re.error as exc:
        raise ConfigError(
            f"Invalid whitelist pattern {exc.pattern!r}: {exc}", context={"pattern": exc.pattern}
        ) from exc

    extensions = tuple(_normalize_extension(e) for e in _string_list(raw, "extensions"))
    options = AnalysisOptions(
        extensions=_merge_unique(settings.DEFAULT_EXTENSIONS, extensions),
        parser_plugins=_string_list(raw, "parser_plugins"),
        helpers=_merge_unique(settings.DEFAULT_HELPERS, _string_list(raw, "helpers")),
        analyze_concat_expression=raw.get("analyze_concat_expression", False),
        translation_files=_string_list(raw, "translation_files") or settings.DEFAULT_TRANSLATION_FILES,
        external_paths=_string_list(raw, "external_paths"),
    )
    return AnalyzerConfig(
        options=options,
        whitelist=whitelist,
        error_on_unused_whitelist_entries=raw.get("error_on_unused_whitelist_entries", False),
    )


def load_config(root_dir: str, config_path: str | None = None) -> AnalyzerConfig:
    """Load the project configuration (defaults when the file is absent)."""
    path = os.path.join(root_dir, config_path or settings.CONFIG_PATH)
    if not os.path.isfile(path):
        _log.debug("No configuration file at %s; using defaults", path)
        return AnalyzerConfig()
    with open(path, "r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
    _log.debug("Loaded configuration from %s", path)
    return build_config(raw)
