"""Declared-value comparison strategies used by the reconciler.

Two strategies exist. ``ExactMatcher`` compares the declared value and the
resolved version as plain strings. ``RangeMatcher`` (the default) also
treats the declared value as a version range and accepts any version the
range contains. Ranges are read in the dialect of the ecosystem:
PEP 440 specifiers for PyPI, npm range syntax for npm. npm ranges are
translated to PEP 440 specifier sets. A declared value that cannot be
parsed as a range only matches itself literally.
"""

from __future__ import annotations

import re
from typing import Protocol

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion

from depsync.engines.versions import get_version_parser, parse_semver

ANY_VERSION = frozenset({"", "*", "x", "X", "latest"})

_PARTIAL_RE = re.compile(
    r"^v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)
_COMPARATOR_RE = re.compile(r"^(\^|~>?|>=|<=|>|<|=)?(.*)$")
_OPERATOR_GAP_RE = re.compile(r"(\^|~>?|>=|<=|>|<|=)\s+")
_HYPHEN_RE = re.compile(r"\s+-\s+")


class VersionMatcher(Protocol):
    def satisfies(self, declared: str, version: str) -> bool: ...


class ExactMatcher:
    """Declared value must equal the resolved version literally."""

    def satisfies(self, declared: str, version: str) -> bool:
        return declared.strip() == version


# ── npm ranges ────────────────────────────────────────────────────────────


def _partial(text: str) -> tuple[int | None, int | None, int | None, str]:
    m = _PARTIAL_RE.match(text)
    if not m:
        raise ValueError(f"invalid version in range: {text!r}")
    major, minor, patch = (
        None if g is None or g in ("x", "X", "*") else int(g) for g in m.group(1, 2, 3)
    )
    # 1.x.3 is meaningless; everything after a wildcard is a wildcard
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None
    return major, minor, patch, m.group(4) or ""


def _fmt(major: int, minor: int, patch: int, pre: str = "") -> str:
    version = parse_semver(f"{major}.{minor}.{patch}{pre}")
    if version is None:
        raise ValueError(f"invalid version in range: {major}.{minor}.{patch}{pre}")
    return str(version)


def _comparator(token: str) -> list[str]:
    m = _COMPARATOR_RE.match(token)
    op, rest = m.group(1), m.group(2)  # type: ignore[union-attr]
    major, minor, patch, pre = _partial(rest)
    if major is None:
        return []

    if op in (None, "="):
        if minor is None:
            return [f">={_fmt(major, 0, 0)}", f"<{_fmt(major + 1, 0, 0)}"]
        if patch is None:
            return [f">={_fmt(major, minor, 0)}", f"<{_fmt(major, minor + 1, 0)}"]
        return [f"=={_fmt(major, minor, patch, pre)}"]

    low = _fmt(major, minor or 0, patch or 0, pre)
    if op == "^":
        if major > 0 or minor is None:
            high = _fmt(major + 1, 0, 0)
        elif minor > 0 or patch is None:
            high = _fmt(0, minor + 1, 0)
        else:
            high = _fmt(0, 0, patch + 1)
        return [f">={low}", f"<{high}"]
    if op in ("~", "~>"):
        high = _fmt(major + 1, 0, 0) if minor is None else _fmt(major, minor + 1, 0)
        return [f">={low}", f"<{high}"]
    if op == ">=":
        return [f">={low}"]
    if op == "<":
        return [f"<{low}"]
    if op == ">":
        if minor is None:
            return [f">={_fmt(major + 1, 0, 0)}"]
        if patch is None:
            return [f">={_fmt(major, minor + 1, 0)}"]
        return [f">{low}"]
    # "<="
    if minor is None:
        return [f"<{_fmt(major + 1, 0, 0)}"]
    if patch is None:
        return [f"<{_fmt(major, minor + 1, 0)}"]
    return [f"<={low}"]


def _hyphen(low: str, high: str) -> list[str]:
    lo_major, lo_minor, lo_patch, lo_pre = _partial(low)
    hi_major, hi_minor, hi_patch, hi_pre = _partial(high)
    specs: list[str] = []
    if lo_major is not None:
        specs.append(f">={_fmt(lo_major, lo_minor or 0, lo_patch or 0, lo_pre)}")
    if hi_major is None:
        return specs
    if hi_minor is None:
        specs.append(f"<{_fmt(hi_major + 1, 0, 0)}")
    elif hi_patch is None:
        specs.append(f"<{_fmt(hi_major, hi_minor + 1, 0)}")
    else:
        specs.append(f"<={_fmt(hi_major, hi_minor, hi_patch, hi_pre)}")
    return specs


def npm_range_to_specifiers(declared: str) -> list[SpecifierSet]:
    """Translate an npm range into alternatives of PEP 440 specifier sets.

    ``"^1.2.0 || 2.x"`` becomes ``[>=1.2.0,<2.0.0, >=2.0.0,<3.0.0]``.
    Raises :class:`ValueError` for anything that is not a range
    (git URLs, ``file:`` paths, dist-tags other than ``latest``).
    """
    alternatives: list[SpecifierSet] = []
    for alternative in declared.split("||"):
        alternative = alternative.strip()
        if alternative in ANY_VERSION:
            alternatives.append(SpecifierSet())
            continue
        bounds = _HYPHEN_RE.split(alternative)
        if len(bounds) == 2:
            specs = _hyphen(*bounds)
        else:
            specs = []
            for token in _OPERATOR_GAP_RE.sub(r"\1", alternative).split():
                specs.extend(_comparator(token))
        alternatives.append(SpecifierSet(",".join(specs)))
    return alternatives


def pep440_to_specifiers(declared: str) -> list[SpecifierSet]:
    """A PEP 440 specifier set; a bare version means ``==version``."""
    text = declared.strip()
    if text in ANY_VERSION:
        return [SpecifierSet()]
    if text[0].isdigit():
        text = f"=={text}"
    return [SpecifierSet(text)]


_DIALECTS = {
    "pep440": pep440_to_specifiers,
    "npm": npm_range_to_specifiers,
}


class RangeMatcher:
    """Declared value equals the version, or is a range containing it."""

    def __init__(self, dialect: str = "pep440") -> None:
        if dialect not in _DIALECTS:
            raise ValueError(f"unknown range dialect '{dialect}'")
        self.dialect = dialect
        self._parse = _DIALECTS[dialect]
        self._parse_version = get_version_parser(dialect)

    def satisfies(self, declared: str, version: str) -> bool:
        declared = declared.strip()
        if declared == version or declared in ANY_VERSION:
            return True
        try:
            alternatives = self._parse(declared)
            parsed = self._parse_version(version)
        except (ValueError, InvalidSpecifier, InvalidVersion):
            return False
        if parsed is None:
            return False
        return any(spec.contains(parsed, prereleases=True) for spec in alternatives)
