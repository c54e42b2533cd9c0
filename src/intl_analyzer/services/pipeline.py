"""High-level orchestration of one analyzer run."""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from intl_analyzer.config.loader import load_config
from intl_analyzer.core import filesystem
from intl_analyzer.domain.models import AnalyzerConfig, CatalogKeyMap, Diagnostics
from intl_analyzer.parsing.catalog import analyze_catalogs, collect_catalog_keys, read_catalogs
from intl_analyzer.services.analyzer import analyze_sources
from intl_analyzer.services.prune import prune_catalogs
from intl_analyzer.services.reconcile import reconcile
from intl_analyzer.utils.formatting import Styler, generate_file_list

_log = logging.getLogger(__name__)

NUM_STEPS = 4


def _report(
    log: Callable[..., None], style: Styler, kind: str, found: CatalogKeyMap
) -> None:
    log()
    if not found:
        log(f" 👏  No {kind} translations were found!")
        return
    log(f" ⚠️   Found {style(len(found), 'bold', 'yellow')} {kind} translations!")
    log()
    for key, files in found.items():
        where = f"(used in {generate_file_list(files)})"
        log(f"   - {key} {style(where, 'dim')}")


def run(
    root_dir: str,
    *,
    fix: bool = False,
    color: bool = True,
    log: Optional[Callable[..., None]] = None,
    write_to_file: Optional[Callable[[str, str], None]] = None,
    config: Optional[AnalyzerConfig] = None,
) -> int:
    """Analyze the project at ``root_dir`` and print a report.

    Returns the process exit status: 1 when missing translations, unused
    translations (outside fix mode) or, if configured, unused whitelist
    entries were found; 0 otherwise.
    """
    log = log or print
    style = Styler(color)

    def step(num: int) -> str:
        return style(f"[{num}/{NUM_STEPS}]", "dim")

    if write_to_file is None:

        def write_to_file(path: str, content: str) -> None:
            filesystem.write_text(os.path.join(root_dir, path), content)

    config = config or load_config(root_dir)
    options = config.options

    log(f"{step(1)} 🔍  Finding JS and HBS files...")
    files = filesystem.find_app_files(root_dir, options.extensions)
    _log.debug("Found %d source files", len(files))

    log(f"{step(2)} 🔍  Searching for translations keys in JS and HBS files...")
    used = analyze_sources(root_dir, files, options)

    log(f"{step(3)} ⚙️   Checking for unused translations...")
    translation_files = filesystem.find_translation_files(root_dir, options.translation_files)
    documents = read_catalogs(root_dir, translation_files)
    existing = collect_catalog_keys(documents.values())

    log(f"{step(4)} ⚙️   Checking for missing translations...")
    external_files = filesystem.find_external_translation_files(root_dir, options.external_paths)
    external = analyze_catalogs(root_dir, external_files) if external_files else None
    diagnostics: Diagnostics = reconcile(existing, used, config.whitelist, external=external)

    _report(log, style, "unused", diagnostics.unused)
    _report(log, style, "missing", diagnostics.missing)

    if fix and diagnostics.unused:
        prune_catalogs(documents.values(), diagnostics.unused, write_to_file)
        log()
        log(" ✨  All unused translations were removed")

    exit_code = 1 if diagnostics.has_errors(fix=fix) else 0

    if diagnostics.unused_whitelist_entries:
        count = len(diagnostics.unused_whitelist_entries)
        log()
        log(
            f" ⚠️   Found {style(count, 'bold', 'yellow')} unused whitelist entries! "
            "Please remove them from the whitelist:"
        )
        log()
        for entry in diagnostics.unused_whitelist_entries:
            log(f"   - /{entry.pattern}/")
        if config.error_on_unused_whitelist_entries:
            exit_code = 1
    return exit_code
