"""Reader/writer for npm package.json files."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from depsync.engines.models import DeclaredDependency
from depsync.exceptions import ManifestError
from depsync.manifest.registry import Manifest, read_text, register_format, write_text

# Order matters: a name in "dependencies" shadows the same name elsewhere.
SECTIONS = ("dependencies", "devDependencies", "optionalDependencies", "peerDependencies")
_MAIN_SECTION = "dependencies"

_INDENT_RE = re.compile(r"^\{\s*?\n([ \t]+)\S")


def _load(path: Path, text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(path, "top level is not a JSON object")
    return data


def _detect_indent(text: str) -> str | int:
    m = _INDENT_RE.match(text)
    return m.group(1) if m else 2


class PackageJsonFormat:
    name = "package-json"
    ecosystem = "npm"
    file_patterns = ["package.json"]

    def read(self, path: Path) -> Manifest:
        data = _load(path, read_text(path))
        manifest = Manifest(path=path, format=self.name, ecosystem=self.ecosystem)
        for section in SECTIONS:
            deps = data.get(section)
            if not isinstance(deps, dict):
                continue
            for name, constraint in deps.items():
                if name in manifest.entries or not isinstance(constraint, str):
                    continue
                manifest.entries[name] = DeclaredDependency(
                    name=name, constraint=constraint, raw=constraint, section=section
                )
        return manifest

    def write(self, manifest: Manifest, updates: Mapping[str, str]) -> None:
        path = manifest.path
        text = read_text(path) if path.exists() else "{}\n"
        data = _load(path, text)

        for name, version in updates.items():
            entry = manifest.entries.get(name)
            section = entry.section if entry and entry.section else _MAIN_SECTION
            deps = data.get(section)
            if not isinstance(deps, dict):
                deps = data[section] = {}
            deps[name] = version

        if isinstance(data.get(_MAIN_SECTION), dict):
            data[_MAIN_SECTION] = dict(sorted(data[_MAIN_SECTION].items()))

        rendered = json.dumps(data, indent=_detect_indent(text), ensure_ascii=False)
        if text.endswith("\n"):
            rendered += "\n"
        write_text(path, rendered)


register_format(PackageJsonFormat())
