"""Classify resolved packages against the declared manifest. No I/O."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from depsync.engines.models import ReconciliationResult
from depsync.engines.reconciler.matchers import RangeMatcher, VersionMatcher


def _identity(name: str) -> str:
    return name


def reconcile(
    resolved: Mapping[str, str],
    declared: Mapping[str, str],
    *,
    matcher: VersionMatcher | None = None,
    normalize: Callable[[str], str] = _identity,
) -> ReconciliationResult:
    """Split *resolved* into added / updated / unchanged relative to *declared*.

    Names are compared through *normalize*; entries that are already
    declared keep the declared spelling in the result. *declared* is
    never modified. The default matcher is a PEP 440 :class:`RangeMatcher`.
    """
    matcher = matcher or RangeMatcher()
    index = {normalize(name): name for name in sorted(declared)}

    added: dict[str, str] = {}
    updated: dict[str, str] = {}
    unchanged: dict[str, str] = {}
    previous: dict[str, str] = {}

    for name in sorted(resolved):
        version = resolved[name]
        declared_name = index.get(normalize(name))
        if declared_name is None:
            added[name] = version
            continue
        current = declared[declared_name]
        if matcher.satisfies(current, version):
            unchanged[declared_name] = version
        else:
            updated[declared_name] = version
            previous[declared_name] = current

    return ReconciliationResult(
        added=added, updated=updated, unchanged=unchanged, previous=previous
    )


def merge(
    declared: Mapping[str, str],
    result: ReconciliationResult,
    *,
    update_existing: bool = False,
) -> dict[str, str]:
    """New declared mapping with the result folded in.

    ``added`` entries are always merged; ``updated`` ones only with
    *update_existing*.
    """
    merged = dict(declared)
    merged.update(result.changes(update_existing))
    return merged
