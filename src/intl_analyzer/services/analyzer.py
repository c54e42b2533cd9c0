"""Source file analysis: dialect dispatch and used-key aggregation.

Each supported file extension maps to one :class:`Dialect`. A dialect turns
the text of a single file into the set of translation keys it references;
the analyzer merges those per-file sets into a key -> files map.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Set

from intl_analyzer.core import filesystem
from intl_analyzer.domain.models import AnalysisOptions, UsedKeyMap, add_key
from intl_analyzer.parsing.emblem import extract_emblem_keys
from intl_analyzer.parsing.errors import ParseError, UnknownExtensionError
from intl_analyzer.parsing.handlebars import extract_template_keys
from intl_analyzer.parsing.script import Grammar, extract_script_keys
from intl_analyzer.parsing.template_tag import extract_component_keys

_log = logging.getLogger(__name__)

KNOWN_PARSER_PLUGINS = frozenset({"typescript", "jsx"})


class Dialect:
    """A source grammar able to extract translation keys from file contents."""

    name = "dialect"

    def extract(self, content: str, options: AnalysisOptions) -> Set[str]:  # pragma: no cover
        raise NotImplementedError


def _plugin_grammar(base: Grammar, options: AnalysisOptions) -> Grammar:
    plugins = set(options.parser_plugins)
    if base == "javascript" and "typescript" in plugins:
        base = "typescript"
    if base == "typescript" and "jsx" in plugins:
        base = "tsx"
    return base


@dataclass(frozen=True)
class ScriptDialect(Dialect):
    grammar: Grammar = "javascript"
    jsx: bool = False

    @property
    def name(self) -> str:  # type: ignore[override]
        return "jsx" if self.jsx else self.grammar

    def extract(self, content: str, options: AnalysisOptions) -> Set[str]:
        return extract_script_keys(
            content,
            grammar=_plugin_grammar(self.grammar, options),
            helpers=options.helpers,
            jsx=self.jsx,
        )


class MarkupDialect(Dialect):
    name = "handlebars"

    def extract(self, content: str, options: AnalysisOptions) -> Set[str]:
        return extract_template_keys(
            content, options.helpers, analyze_concat=options.analyze_concat_expression
        )


class WhitespaceTemplateDialect(Dialect):
    name = "emblem"

    def extract(self, content: str, options: AnalysisOptions) -> Set[str]:
        return extract_emblem_keys(
            content, options.helpers, analyze_concat=options.analyze_concat_expression
        )


@dataclass(frozen=True)
class CompositeDialect(Dialect):
    grammar: Grammar = "javascript"

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"{self.grammar} component"

    def extract(self, content: str, options: AnalysisOptions) -> Set[str]:
        return extract_component_keys(
            content,
            grammar=_plugin_grammar(self.grammar, options),
            helpers=options.helpers,
            analyze_concat=options.analyze_concat_expression,
        )


DIALECTS: Dict[str, Dialect] = {
    ".js": ScriptDialect("javascript"),
    ".ts": ScriptDialect("typescript"),
    ".jsx": ScriptDialect("javascript", jsx=True),
    ".tsx": ScriptDialect("tsx", jsx=True),
    ".hbs": MarkupDialect(),
    ".emblem": WhitespaceTemplateDialect(),
    ".gjs": CompositeDialect("javascript"),
    ".gts": CompositeDialect("typescript"),
}


def dialect_for(path: str) -> Dialect:
    extension = os.path.splitext(path)[1].lower()
    try:
        return DIALECTS[extension]
    except KeyError:
        raise UnknownExtensionError(extension, path) from None


def analyze_file(
    root_dir: str,
    path: str,
    options: AnalysisOptions,
    *,
    read_file: Callable[[str], str] = filesystem.read_text,
) -> Set[str]:
    dialect = dialect_for(path)
    content = read_file(os.path.join(root_dir, path))
    try:
        keys = dialect.extract(content, options)
    except ParseError as exc:
        raise exc.with_path(path) from exc
    _log.debug("%s (%s): %d keys", path, dialect.name, len(keys))
    return keys


def analyze_sources(
    root_dir: str,
    file_paths: Iterable[str],
    options: AnalysisOptions | None = None,
    *,
    read_file: Callable[[str], str] = filesystem.read_text,
) -> UsedKeyMap:
    """Analyze every file and return a key -> referencing files map."""
    options = options or AnalysisOptions()
    unknown_plugins = set(options.parser_plugins) - KNOWN_PARSER_PLUGINS
    if unknown_plugins:
        _log.warning("Ignoring unsupported parser plugins: %s", ", ".join(sorted(unknown_plugins)))
    used: UsedKeyMap = {}
    for path in file_paths:
        for key in analyze_file(root_dir, path, options, read_file=read_file):
            add_key(used, key, path)
    return used
