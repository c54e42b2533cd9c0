"""Structured errors raised by the extraction and reconciliation engine.

All of them are fatal for a run: a partially analyzed project would produce
wrong missing/unused reports, so nothing here is retried or suppressed.
"""

from __future__ import annotations
from typing import Any


class AnalyzerError(Exception):
    """Base class for analyzer issues."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class UnknownExtensionError(AnalyzerError):
    """Raised when a source file has no registered dialect."""

    def __init__(self, extension: str, path: str):
        super().__init__(
            f"Unknown extension: {extension} ({path})",
            context={"extension": extension, "path": path},
        )
        self.extension = extension
        self.path = path


class ParseError(AnalyzerError):
    """Raised for malformed source or catalog documents."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ):
        location = ""
        if path:
            location = path
            if line is not None:
                location += f":{line}"
                if column is not None:
                    location += f":{column}"
        super().__init__(
            f"{message} ({location})" if location else message,
            context={"path": path, "line": line, "column": column},
        )
        self.path = path
        self.line = line
        self.column = column

    def with_path(self, path: str) -> "ParseError":
        """Return a copy of this error attributed to ``path``."""
        if self.path:
            return self
        detail = str(self.args[0]) if self.args else "Parse error"
        return ParseError(detail, path=path, line=self.line, column=self.column)


class InvalidCatalogValueError(AnalyzerError):
    """Raised when a catalog leaf is neither a string nor a nested mapping."""

    def __init__(self, key: str, path: str, value: Any):
        type_name = type(value).__name__
        super().__init__(
            f"Unknown value type: {type_name} (for {key} in {path})",
            context={"key": key, "path": path, "type": type_name},
        )
        self.key = key
        self.path = path


class EmptyFileListError(AnalyzerError):
    """Raised when a file list is formatted without any entries."""


class ConfigError(AnalyzerError):
    """Raised for invalid analyzer configuration files."""
