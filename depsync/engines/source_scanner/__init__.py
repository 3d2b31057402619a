"""Source scanner engine: find the modules a source tree imports."""

from depsync.engines.source_scanner.registry import (
    EXTRACTOR_REGISTRY,
    SourceExtractor,
    get_extractor,
)
from depsync.engines.source_scanner.scanner import discover_packages, iter_module_references

__all__ = [
    "EXTRACTOR_REGISTRY",
    "SourceExtractor",
    "discover_packages",
    "get_extractor",
    "iter_module_references",
]
