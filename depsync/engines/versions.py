"""Version parsing per ecosystem.

PyPI versions are PEP 440. npm versions are semver, where every
``X.Y.Z-tag`` is a pre-release of ``X.Y.Z``. PEP 440 reads some of those
tags differently (``1.0.0-1`` is a post-release there), so semver
strings are mapped onto an equivalent PEP 440 pre-release before they
are compared.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from packaging.version import InvalidVersion, Version

VersionParser = Callable[[str], "Version | None"]

_SEMVER_RE = re.compile(
    r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)
_LABEL_RE = re.compile(r"^([A-Za-z]+)(\d*)$")
_PRE_LABELS = {
    "a": "a",
    "alpha": "a",
    "b": "b",
    "beta": "b",
    "c": "rc",
    "rc": "rc",
    "pre": "rc",
    "preview": "rc",
}


def parse_pep440(raw: str) -> Version | None:
    try:
        return Version(raw.strip())
    except InvalidVersion:
        return None


def _semver_pre(tag: str) -> str:
    parts = re.split(r"[.-]", tag)
    numbers = [p for p in parts[1:] if p.isdigit()]
    first = parts[0]
    if first.isdigit():
        return f".dev{int(first)}"
    m = _LABEL_RE.match(first)
    if m and m.group(1).lower() in _PRE_LABELS:
        number = m.group(2) or (numbers[0] if numbers else "0")
        return f"{_PRE_LABELS[m.group(1).lower()]}{int(number)}"
    # unknown labels (next, canary, ...) sort below alpha
    return f".dev{int(numbers[0]) if numbers else 0}"


def parse_semver(raw: str) -> Version | None:
    """Parse an npm version; any ``-tag`` yields a pre-release.

    Build metadata (``+sha``) is ignored, as semver precedence does.
    """
    m = _SEMVER_RE.match(raw.strip())
    if not m:
        return None
    major, minor, patch, tag = m.groups()
    pre = _semver_pre(tag) if tag else ""
    return Version(f"{int(major)}.{int(minor)}.{int(patch)}{pre}")


VERSION_PARSERS: dict[str, VersionParser] = {
    "pep440": parse_pep440,
    "npm": parse_semver,
}


def get_version_parser(dialect: str) -> VersionParser:
    try:
        return VERSION_PARSERS[dialect]
    except KeyError:
        raise ValueError(f"unknown version dialect '{dialect}'") from None
