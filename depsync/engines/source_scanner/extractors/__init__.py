"""Source extractors: auto-registered on import."""

from depsync.engines.source_scanner.extractors import (
    javascript_imports,  # noqa: F401
    python_imports,  # noqa: F401
)
