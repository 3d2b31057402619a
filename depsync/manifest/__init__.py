"""Manifest persistence: read declared dependencies, write merged ones back."""

from __future__ import annotations

from pathlib import Path

from depsync.manifest import package_json, pyproject_toml, requirements_txt
from depsync.manifest.registry import (
    MANIFEST_REGISTRY,
    Manifest,
    ManifestFormat,
    format_for,
    read_manifest,
    write_manifest,
)


def discover_manifest(root: Path | str, ecosystem: str | None = None) -> Path | None:
    """Pick the manifest that declares *root*'s dependencies.

    ``package.json`` for npm; for PyPI a ``pyproject.toml`` with a
    ``[project]`` table, then ``requirements.txt``. ``None`` if there is
    nothing suitable.
    """
    root = Path(root)
    candidates: list[Path] = []
    if ecosystem in (None, "npm"):
        candidates.append(root / "package.json")
    if ecosystem in (None, "pypi"):
        pyproject = root / "pyproject.toml"
        if pyproject.is_file() and pyproject_toml.PyprojectTomlFormat.has_project_table(pyproject):
            candidates.append(pyproject)
        candidates.append(root / "requirements.txt")
    for path in candidates:
        if path.is_file():
            return path
    return None


def infer_ecosystem(root: Path | str, manifest: Path | None = None) -> str:
    """Ecosystem of *manifest* if given, else guessed from *root*."""
    if manifest is not None:
        return format_for(manifest).ecosystem
    return "npm" if (Path(root) / "package.json").is_file() else "pypi"


__all__ = [
    "MANIFEST_REGISTRY",
    "Manifest",
    "ManifestFormat",
    "discover_manifest",
    "format_for",
    "infer_ecosystem",
    "package_json",
    "pyproject_toml",
    "read_manifest",
    "requirements_txt",
    "write_manifest",
]
