"""Minimal PEP 508 requirement-line parsing and rendering."""

from __future__ import annotations

import re
from dataclasses import dataclass

# name, optional [extras], version specifiers, optional "; marker"
_PEP508_RE = re.compile(
    r"^([A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?)"  # package name
    r"\s*(\[[^\]]*\])?"  # optional extras [extra1,extra2]
    r"\s*([^;]*?)"  # version specifiers
    r"\s*(;.*)?$",  # environment marker
)

_EXACT_VERSION_RE = re.compile(r"^==\s*([^\s,;*]+)$")


@dataclass(frozen=True)
class Requirement:
    name: str
    extras: str = ""
    specifier: str = ""
    marker: str = ""

    @property
    def constraint(self) -> str:
        """Declared value: the pinned version for ``==X``, else the specifier."""
        exact = _EXACT_VERSION_RE.match(self.specifier)
        if exact:
            return exact.group(1)
        return self.specifier.replace(" ", "")


def parse_requirement(line: str) -> Requirement | None:
    m = _PEP508_RE.match(line.strip())
    if not m:
        return None
    specifier = (m.group(4) or "").strip()
    # Direct references ("pkg @ https://...") are not version constraints
    if specifier.startswith("@"):
        specifier = ""
    marker = (m.group(5) or "").strip()
    return Requirement(
        name=m.group(1),
        extras=m.group(3) or "",
        specifier=specifier,
        marker=marker[1:].strip() if marker else "",
    )


def render_requirement(name: str, version: str, *, extras: str = "", marker: str = "") -> str:
    """``name[extras]==version; marker``: ranges are written as given."""
    if not version:
        spec = ""
    elif version[0].isdigit():
        spec = f"=={version}"
    else:
        spec = version
    text = f"{name}{extras}{spec}"
    if marker:
        text += f"; {marker}"
    return text
