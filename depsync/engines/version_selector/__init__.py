"""Version selector engine: choose the best published version per package."""

from depsync.engines.version_selector.selector import (
    Selection,
    best_version,
    select_version,
    select_versions,
)

__all__ = ["Selection", "best_version", "select_version", "select_versions"]
