"""Command line entry point.

Example:
  intl-analyzer --fix
  intl-analyzer --root ./my-app --no-color
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from intl_analyzer.config.loader import load_config
from intl_analyzer.core.filesystem import find_project_root
from intl_analyzer.parsing.errors import AnalyzerError
from intl_analyzer.services.pipeline import run


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="intl-analyzer",
        description="Find missing and unused translations in a front-end project",
    )
    p.add_argument("--fix", action="store_true", help="Remove unused translations from the catalogs")
    p.add_argument("--no-color", dest="color", action="store_false", help="Disable colored output")
    p.add_argument(
        "--root",
        default=None,
        help="Project root (default: nearest ancestor of the working directory with a package.json)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Configuration file relative to the project root (default: config/intl-analyzer.yml)",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    root = args.root or find_project_root(os.getcwd())
    if root is None or not os.path.isdir(root):
        print("Project root not found (no package.json above the working directory)", file=sys.stderr)
        return 2
    try:
        config = load_config(root, args.config)
        return run(root, fix=args.fix, color=args.color, config=config)
    except AnalyzerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
