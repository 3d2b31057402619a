"""Extractor registry: match source files to import extractors."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class SourceExtractor(Protocol):
    """Interface that every source extractor must satisfy."""

    ecosystem: str
    file_suffixes: tuple[str, ...]

    def extract(self, file_path: Path, content: str) -> set[str]:
        """Return module references exactly as written in *content*."""
        ...

    def local_modules(self, root: Path, files: Iterable[Path]) -> set[str]:
        """Names that refer to code inside the project itself."""
        ...

    def package_name(self, reference: str, local: set[str]) -> str | None:
        """Registry package for *reference*, or ``None`` if it is not one."""
        ...


EXTRACTOR_REGISTRY: dict[str, SourceExtractor] = {}


def register_extractor(extractor: SourceExtractor) -> None:
    """Register an extractor instance by its ecosystem."""
    EXTRACTOR_REGISTRY[extractor.ecosystem] = extractor


def get_extractor(ecosystem: str) -> SourceExtractor:
    try:
        return EXTRACTOR_REGISTRY[ecosystem]
    except KeyError:
        raise ValueError(f"no source extractor registered for '{ecosystem}'") from None


def matches(extractor: SourceExtractor, file_path: Path) -> bool:
    return file_path.suffix.lower() in extractor.file_suffixes
