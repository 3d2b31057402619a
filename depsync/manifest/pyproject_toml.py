"""Reader/writer for ``[project]`` dependencies in pyproject.toml."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import ParseError

from depsync.engines.models import DeclaredDependency
from depsync.exceptions import ManifestError
from depsync.manifest.pep508 import parse_requirement, render_requirement
from depsync.manifest.registry import Manifest, read_text, register_format, write_text

_MAIN_SECTION = "dependencies"


def _sections(project: Mapping[str, Any]) -> list[tuple[str, list[Any]]]:
    """``(section, requirement list)`` pairs; main dependencies first."""
    sections: list[tuple[str, list[Any]]] = []
    main = project.get("dependencies")
    if isinstance(main, list):
        sections.append((_MAIN_SECTION, main))
    optional = project.get("optional-dependencies")
    if isinstance(optional, Mapping):
        for group in sorted(optional):
            items = optional[group]
            if isinstance(items, list):
                sections.append((f"optional-dependencies.{group}", items))
    return sections


class PyprojectTomlFormat:
    name = "pyproject-toml"
    ecosystem = "pypi"
    file_patterns = ["pyproject.toml"]

    @staticmethod
    def has_project_table(path: Path) -> bool:
        try:
            return "project" in tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            return False

    def read(self, path: Path) -> Manifest:
        try:
            data = tomllib.loads(read_text(path))
        except tomllib.TOMLDecodeError as exc:
            raise ManifestError(path, f"invalid TOML: {exc}") from exc

        manifest = Manifest(path=path, format=self.name, ecosystem=self.ecosystem)
        project = data.get("project", {})
        for section, items in _sections(project):
            for raw in items:
                if not isinstance(raw, str):
                    continue
                req = parse_requirement(raw)
                # The main list wins when a name also appears in an extra
                if req is None or req.name in manifest.entries:
                    continue
                manifest.entries[req.name] = DeclaredDependency(
                    name=req.name, constraint=req.constraint, raw=raw, section=section
                )
        return manifest

    def write(self, manifest: Manifest, updates: Mapping[str, str]) -> None:
        path = manifest.path
        try:
            doc = tomlkit.parse(read_text(path)) if path.exists() else tomlkit.document()
        except ParseError as exc:
            raise ManifestError(path, f"invalid TOML: {exc}") from exc

        if "project" not in doc:
            doc["project"] = tomlkit.table()
        project = doc["project"]
        if "dependencies" not in project:
            deps = tomlkit.array()
            deps.multiline(True)
            project["dependencies"] = deps

        pending = {canonicalize_name(name): (name, version) for name, version in updates.items()}
        for _, items in _sections(project):
            for index, raw in enumerate(list(items)):
                if not isinstance(raw, str):
                    continue
                req = parse_requirement(str(raw))
                if req is None or canonicalize_name(req.name) not in pending:
                    continue
                _, version = pending.pop(canonicalize_name(req.name))
                items[index] = render_requirement(
                    req.name, version, extras=req.extras, marker=req.marker
                )

        deps = project["dependencies"]
        for name, version in sorted(pending.values(), key=lambda item: item[0].lower()):
            deps.append(render_requirement(name, version))

        write_text(path, tomlkit.dumps(doc))


register_format(PyprojectTomlFormat())
