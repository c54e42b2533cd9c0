"""Filesystem utility helpers and project file discovery."""

from __future__ import annotations
import os
import glob
from typing import Iterable

from intl_analyzer.config import settings


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def write_text(path: str, content: str, encoding: str = "utf-8") -> None:
    dir_part = os.path.dirname(path)
    if dir_part:
        ensure_dir(dir_part)
    with open(path, "w", encoding=encoding) as fh:
        fh.write(content)


def read_text(path: str, encoding: str = "utf-8") -> str:
    with open(path, "r", encoding=encoding) as fh:
        return fh.read()


def glob_files(pattern: str, root: str | None = None) -> list[str]:
    return glob.glob(pattern, root_dir=root, recursive=True)


def _relative_matches(root: str, patterns: Iterable[str]) -> list[str]:
    found: set[str] = set()
    for pattern in patterns:
        for match in glob_files(pattern, root):
            if os.path.isfile(os.path.join(root, match)):
                found.add(match.replace(os.sep, "/"))
    return sorted(found)


def find_app_files(root: str, extensions: Iterable[str]) -> list[str]:
    """Return source files below ``app/`` and ``addon/`` with one of ``extensions``."""
    patterns = [
        f"{base}/**/*{ext}" for base in settings.APP_DIRS for ext in extensions
    ]
    return _relative_matches(root, patterns)


def find_translation_files(root: str, patterns: Iterable[str] | None = None) -> list[str]:
    """Return catalog files; ``patterns`` are relative to ``translations/``."""
    patterns = patterns or settings.DEFAULT_TRANSLATION_FILES
    return _relative_matches(
        root, [f"{settings.TRANSLATIONS_DIR}/{p.lstrip('/')}" for p in patterns]
    )


def find_external_translation_files(root: str, external_paths: Iterable[str]) -> list[str]:
    """Catalogs shipped by packages in ``node_modules`` (glob patterns allowed)."""
    patterns = []
    for external in external_paths:
        base = f"{settings.NODE_MODULES_DIR}/{external.strip('/')}/{settings.TRANSLATIONS_DIR}"
        patterns.extend(f"{base}/**/*{ext}" for ext in (".json", ".yaml", ".yml"))
    return _relative_matches(root, patterns)


def find_project_root(start: str) -> str | None:
    """Return the nearest directory (``start`` included) holding a ``package.json``."""
    current = os.path.abspath(start)
    while True:
        if os.path.isfile(os.path.join(current, "package.json")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent
