"""Static analysis of translation key usage in front-end projects."""

from .services.analyzer import analyze_sources, analyze_file, dialect_for  # noqa: F401
from .parsing.catalog import analyze_catalogs, read_catalogs, flatten_catalog  # noqa: F401
from .services.reconcile import diff, reconcile  # noqa: F401
from .services.prune import prune_catalogs, remove_translation_key  # noqa: F401
from .services.pipeline import run  # noqa: F401
from .utils.formatting import generate_file_list  # noqa: F401
from .domain.models import AnalysisOptions, AnalyzerConfig, Diagnostics  # noqa: F401
from .parsing.errors import (  # noqa: F401
    AnalyzerError,
    UnknownExtensionError,
    ParseError,
    InvalidCatalogValueError,
    EmptyFileListError,
    ConfigError,
)

__version__ = "0.1.0"
