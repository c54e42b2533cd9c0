# Shared fixtures: a tiny project builder writing files below tmp_path.

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Callable, Dict, Union

import pytest

FileSpec = Union[str, dict]


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[Dict[str, FileSpec]], Path]:
    def _make(files: Dict[str, FileSpec]) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        (root / "package.json").write_text('{"name": "fixture"}', encoding="utf-8")
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                text = json.dumps(content, indent=2)
            else:
                text = textwrap.dedent(content)
            target.write_text(text, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def output_lines():
    lines: list[str] = []

    def log(line: str = "") -> None:
        lines.append(line)

    log.lines = lines  # type: ignore[attr-defined]
    return log
