"""Reader/writer for pip requirements.txt files."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from pathlib import Path

import structlog
from packaging.utils import canonicalize_name

from depsync.engines.models import DeclaredDependency
from depsync.manifest.pep508 import parse_requirement, render_requirement
from depsync.manifest.registry import Manifest, read_text, register_format, write_text

log = structlog.get_logger("depsync.manifest")

_INLINE_COMMENT_RE = re.compile(r"\s+#.*$")
# per-requirement options such as --hash=sha256:...
_OPTION_RE = re.compile(r"\s+--?[A-Za-z]")


def _split_comment(line: str) -> tuple[str, str]:
    m = _INLINE_COMMENT_RE.search(line)
    if not m:
        return line, ""
    return line[: m.start()], m.group(0)


def _split_options(line: str) -> tuple[str, str]:
    m = _OPTION_RE.search(line)
    if not m:
        return line, ""
    return line[: m.start()], line[m.start() :]


def _split_continuation(line: str) -> tuple[str, str]:
    """``"pkg==1 \\"`` -> ``("pkg==1", " \\")``."""
    stripped = line.rstrip()
    if not stripped.endswith("\\"):
        return line, ""
    head = stripped[:-1].rstrip()
    return head, line[len(head) :]


def _logical_lines(content: str) -> Iterator[list[str]]:
    """Group physical lines joined by a trailing backslash."""
    group: list[str] = []
    for raw_line in content.splitlines():
        group.append(raw_line)
        if not _split_continuation(raw_line)[1]:
            yield group
            group = []
    if group:
        yield group


def _join(group: list[str]) -> str:
    return " ".join(_split_continuation(line)[0].strip() for line in group).strip()


def _requirement_body(line: str) -> str:
    body, _ = _split_comment(line)
    body, _ = _split_options(body)
    return body


def _is_requirement_line(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return False
    # -r/-c/-e includes and --index-url style options are left alone
    return not stripped.startswith("-")


class RequirementsTxtFormat:
    name = "requirements-txt"
    ecosystem = "pypi"
    file_patterns = ["requirements.txt", "requirements*.txt", "*.requirements.txt"]

    def read(self, path: Path) -> Manifest:
        manifest = Manifest(path=path, format=self.name, ecosystem=self.ecosystem)
        for group in _logical_lines(read_text(path)):
            line = _join(group)
            if not _is_requirement_line(line):
                continue
            req = parse_requirement(_requirement_body(line))
            if req is None:
                continue
            manifest.entries[req.name] = DeclaredDependency(
                name=req.name, constraint=req.constraint, raw=line
            )
        return manifest

    def write(self, manifest: Manifest, updates: Mapping[str, str]) -> None:
        pending = {canonicalize_name(name): (name, version) for name, version in updates.items()}
        content = read_text(manifest.path) if manifest.path.exists() else ""

        lines: list[str] = []
        for group in _logical_lines(content):
            line = _join(group)
            req = parse_requirement(_requirement_body(line)) if _is_requirement_line(line) else None
            key = canonicalize_name(req.name) if req else None
            if req is None or key not in pending:
                lines.extend(group)
                continue

            _, version = pending.pop(key)
            rendered = render_requirement(req.name, version, extras=req.extras, marker=req.marker)
            first, continuation = _split_continuation(group[0])
            first, comment = _split_comment(first)
            first, options = _split_options(first)
            indent = first[: len(first) - len(first.lstrip())]
            if parse_requirement(first) == req:
                # requirement sits on the first line; options and hashes follow
                lines.append(indent + rendered + options + comment + continuation)
                lines.extend(group[1:])
            else:
                lines.append(indent + rendered + _split_options(_split_comment(line)[0])[1])
            if "--hash" in line:
                log.warning("manifest.stale_hashes", path=str(manifest.path), package=req.name)

        for name, version in sorted(pending.values(), key=lambda item: item[0].lower()):
            lines.append(render_requirement(name, version))

        write_text(manifest.path, "\n".join(lines) + "\n" if lines else "")


register_format(RequirementsTxtFormat())
