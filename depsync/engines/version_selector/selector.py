"""Pick one version per package from registry candidates. No I/O."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from depsync.engines.models import (
    FAILURE_NO_USABLE_VERSION,
    FAILURE_NOT_FOUND,
    FAILURE_UNREACHABLE,
    PackageCandidate,
    ResolutionFailure,
    ResolvedDependency,
)
from depsync.engines.versions import VersionParser, parse_pep440


@dataclass(frozen=True)
class Selection:
    resolved: dict[str, str] = field(default_factory=dict)
    failures: list[ResolutionFailure] = field(default_factory=list)


def best_version(
    versions: Iterable[str],
    *,
    allow_prerelease: bool = False,
    parse: VersionParser = parse_pep440,
) -> str | None:
    """Highest version by semantic ordering.

    Pre-releases only win when *allow_prerelease* is set or when no
    stable version exists. Equal versions spelled differently
    (``1.0`` / ``1.0.0``) are broken by the string itself so the choice
    is stable. *parse* reads versions in the ecosystem's dialect.
    """
    parsed = [(v, raw) for raw in set(versions) if (v := parse(raw)) is not None]
    if not parsed:
        return None
    pool = parsed
    if not allow_prerelease:
        stable = [item for item in parsed if not item[0].is_prerelease]
        pool = stable or parsed
    return max(pool)[1]


def select_version(
    candidate: PackageCandidate,
    *,
    allow_prerelease: bool = False,
    parse: VersionParser = parse_pep440,
) -> ResolvedDependency | None:
    version = best_version(candidate.versions, allow_prerelease=allow_prerelease, parse=parse)
    if version is None:
        return None
    return ResolvedDependency(name=candidate.name, version=version)


def _failure_for(candidate: PackageCandidate) -> ResolutionFailure:
    if candidate.not_found:
        return ResolutionFailure(candidate.name, FAILURE_NOT_FOUND, candidate.error)
    if candidate.error:
        return ResolutionFailure(candidate.name, FAILURE_UNREACHABLE, candidate.error)
    detail = "no releases" if not candidate.versions else "no parseable version"
    return ResolutionFailure(candidate.name, FAILURE_NO_USABLE_VERSION, detail)


def select_versions(
    candidates: Iterable[PackageCandidate],
    *,
    allow_prerelease: bool = False,
    parse: VersionParser = parse_pep440,
) -> Selection:
    """Reduce candidates to ``name -> version`` plus the names that failed.

    Candidates sharing a name are merged before selection, so the result
    does not depend on how many sources reported a package or in which
    order they arrived.
    """
    merged: dict[str, list[PackageCandidate]] = {}
    for candidate in candidates:
        merged.setdefault(candidate.name, []).append(candidate)

    resolved: dict[str, str] = {}
    failures: list[ResolutionFailure] = []
    for name in sorted(merged):
        group = merged[name]
        versions = tuple(sorted({v for c in group for v in c.versions}))
        combined = PackageCandidate(
            name=name,
            versions=versions,
            error=next((c.error for c in group if c.error), None),
            not_found=all(c.not_found for c in group),
        )
        chosen = select_version(combined, allow_prerelease=allow_prerelease, parse=parse)
        if chosen is None:
            failures.append(_failure_for(combined))
        else:
            resolved[name] = chosen.version
    return Selection(resolved=resolved, failures=failures)
