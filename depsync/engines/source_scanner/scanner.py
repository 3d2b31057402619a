"""Walk a source tree and collect the modules it imports."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog

# Ensure extractors are registered before any scan runs.
import depsync.engines.source_scanner.extractors  # noqa: F401
from depsync.engines.models import ModuleReference
from depsync.engines.source_scanner.registry import SourceExtractor, matches
from depsync.exceptions import ScanError

log = structlog.get_logger("depsync.scanner")

EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        "bower_components",
        ".git",
        ".hg",
        ".svn",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        "site-packages",
        "dist",
        "build",
    }
)


def _check_root(root: Path) -> None:
    if not root.exists():
        raise ScanError(root, "directory does not exist")
    if not root.is_dir():
        raise ScanError(root, "not a directory")
    try:
        os.listdir(root)
    except OSError as exc:
        raise ScanError(root, f"unreadable ({exc.strerror or exc})") from exc


def iter_source_files(
    root: Path,
    extractor: SourceExtractor,
    exclude_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield source files under *root* in a stable order."""
    excluded = EXCLUDED_DIRS | set(exclude_dirs)

    def _on_error(exc: OSError) -> None:
        log.warning("scanner.dir_unreadable", path=exc.filename, error=exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        # Prune in place so os.walk never descends into excluded trees
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if matches(extractor, path):
                yield path


def _iter_references(
    root: Path,
    extractor: SourceExtractor,
    exclude_dirs: Iterable[str],
) -> Iterator[ModuleReference]:
    seen: set[str] = set()
    for path in iter_source_files(root, extractor, exclude_dirs):
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log.warning("scanner.file_unreadable", path=str(path), error=str(exc))
            continue
        for reference in sorted(extractor.extract(path, content)):
            if reference not in seen:
                seen.add(reference)
                yield reference


def iter_module_references(
    root: Path | str,
    extractor: SourceExtractor,
    exclude_dirs: Iterable[str] = (),
) -> Iterator[ModuleReference]:
    """Lazily yield every distinct module reference found under *root*.

    Raises :class:`ScanError` immediately, before anything is yielded, if
    *root* is missing or unreadable. Individual unreadable files are
    skipped with a warning.
    """
    root = Path(root)
    _check_root(root)
    return _iter_references(root, extractor, tuple(exclude_dirs))


def discover_packages(
    root: Path | str,
    extractor: SourceExtractor,
    exclude_dirs: Iterable[str] = (),
) -> list[str]:
    """Scan *root* and return the sorted registry package names it uses.

    Local, relative and builtin references are dropped here, before any
    registry lookup.
    """
    root = Path(root)
    references = list(iter_module_references(root, extractor, exclude_dirs))
    local = extractor.local_modules(root, iter_source_files(root, extractor, exclude_dirs))

    packages: set[str] = set()
    for reference in references:
        name = extractor.package_name(reference, local)
        if name is not None:
            packages.add(name)

    log.debug(
        "scanner.done",
        root=str(root),
        references=len(references),
        packages=len(packages),
    )
    return sorted(packages)
