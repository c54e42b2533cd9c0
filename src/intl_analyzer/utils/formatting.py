"""Console formatting helpers for analyzer reports."""

from __future__ import annotations

from typing import Iterable

from intl_analyzer.config import settings
from intl_analyzer.parsing.errors import EmptyFileListError

_TRANSLATIONS_PREFIX = f"{settings.TRANSLATIONS_DIR}/"

_STYLES = {
    "bold": ("\x1b[1m", "\x1b[22m"),
    "dim": ("\x1b[2m", "\x1b[22m"),
    "red": ("\x1b[31m", "\x1b[39m"),
    "yellow": ("\x1b[33m", "\x1b[39m"),
}


def generate_file_list(files: Iterable[str]) -> str:
    """Join file names into prose: ``a``, ``a and b``, ``a, b and c``.

    Catalog paths lose their ``translations/`` prefix; names are sorted.
    """
    names = sorted(
        f[len(_TRANSLATIONS_PREFIX) :] if f.startswith(_TRANSLATIONS_PREFIX) else f for f in files
    )
    if not names:
        raise EmptyFileListError("Unexpected empty file list")
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} and {names[-1]}"


class Styler:
    """Applies ANSI styles when color output is enabled."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def __call__(self, text: object, *styles: str) -> str:
        text = str(text)
        if not self.enabled:
            return text
        for style in styles:
            start, end = _STYLES[style]
            text = f"{start}{text}{end}"
        return text
