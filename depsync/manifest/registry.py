"""Manifest format registry: find a project's manifest and its reader/writer."""

from __future__ import annotations

import fnmatch
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from depsync.engines.models import DeclaredDependency
from depsync.exceptions import ManifestError


@dataclass
class Manifest:
    """Declared dependencies of one project, as read from *path*."""

    path: Path
    format: str
    ecosystem: str
    entries: dict[str, DeclaredDependency] = field(default_factory=dict)

    @property
    def declared(self) -> dict[str, str]:
        return {name: dep.constraint for name, dep in self.entries.items()}


@runtime_checkable
class ManifestFormat(Protocol):
    """Interface that every manifest reader/writer must satisfy."""

    name: str
    ecosystem: str
    file_patterns: list[str]

    def read(self, path: Path) -> Manifest: ...

    def write(self, manifest: Manifest, updates: Mapping[str, str]) -> None: ...


MANIFEST_REGISTRY: dict[str, ManifestFormat] = {}


def register_format(fmt: ManifestFormat) -> None:
    """Register a format instance by its name."""
    MANIFEST_REGISTRY[fmt.name] = fmt


def format_for(path: Path) -> ManifestFormat:
    for fmt in MANIFEST_REGISTRY.values():
        if any(fnmatch.fnmatch(path.name, pattern) for pattern in fmt.file_patterns):
            return fmt
    raise ManifestError(path, "unrecognised manifest file name")


def read_manifest(path: Path | str) -> Manifest:
    path = Path(path)
    return format_for(path).read(path)


def write_manifest(manifest: Manifest, updates: Mapping[str, str]) -> None:
    """Persist *updates* (``name -> version``) into *manifest*'s file."""
    MANIFEST_REGISTRY[manifest.format].write(manifest, updates)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(path, f"cannot read ({exc.strerror or exc})") from exc


def write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ManifestError(path, f"cannot write ({exc.strerror or exc})") from exc
