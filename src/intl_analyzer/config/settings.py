"""Global configuration and constants for the analyzer."""

from __future__ import annotations

import os
from typing import Final

DEFAULT_EXTENSIONS: Final = (".js", ".hbs", ".emblem", ".gjs", ".gts")
DEFAULT_HELPERS: Final = ("t",)

# Source trees scanned below the project root
APP_DIRS: Final = ("app", "addon")
TRANSLATIONS_DIR: Final = "translations"
# Relative to TRANSLATIONS_DIR
DEFAULT_TRANSLATION_FILES: Final = ("**/*.json", "**/*.yaml", "**/*.yml")
NODE_MODULES_DIR: Final = "node_modules"

CONFIG_PATH: Final = os.environ.get("INTL_ANALYZER_CONFIG", "config/intl-analyzer.yml")

# Module the composite component dialect trusts for embedded templates
TEMPLATE_COMPILER_MODULE: Final = "@ember/template-compiler"
TEMPLATE_COMPILER_EXPORT: Final = "template"
