"""Data models shared by the discovery / resolution / reconciliation engines."""

from __future__ import annotations

from dataclasses import dataclass, field

# A module name as written in source, before it is known to be a package.
ModuleReference = str

FAILURE_NOT_FOUND = "not_found"
FAILURE_UNREACHABLE = "unreachable"
FAILURE_NO_USABLE_VERSION = "no_usable_version"


@dataclass(frozen=True)
class PackageCandidate:
    """Versions the registry offers for one package name.

    An empty ``versions`` tuple means the lookup produced nothing usable;
    ``error`` then says why (``None`` when the package simply has no
    releases).
    """

    name: str
    versions: tuple[str, ...] = ()
    error: str | None = None
    not_found: bool = False


@dataclass(frozen=True)
class ResolvedDependency:
    """The single version chosen for a package."""

    name: str
    version: str


@dataclass(frozen=True)
class ResolutionFailure:
    """A package for which no usable version could be obtained."""

    name: str
    reason: str
    detail: str | None = None


@dataclass(frozen=True)
class DeclaredDependency:
    """One entry read from an existing manifest."""

    name: str
    constraint: str
    raw: str | None = None
    section: str | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Resolved packages classified against the declared manifest.

    Every resolved package appears in exactly one of ``added``,
    ``updated`` and ``unchanged``. ``previous`` holds the declared value
    of each ``updated`` entry.
    """

    added: dict[str, str] = field(default_factory=dict)
    updated: dict[str, str] = field(default_factory=dict)
    unchanged: dict[str, str] = field(default_factory=dict)
    previous: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.unchanged)

    def changes(self, update_existing: bool) -> dict[str, str]:
        """Entries to merge back into the manifest.

        Without *update_existing* only ``added`` packages are merged;
        ``updated`` ones are still reported but left alone.
        """
        merged = dict(self.added)
        if update_existing:
            merged.update(self.updated)
        return dict(sorted(merged.items()))

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {
            "added": dict(self.added),
            "updated": dict(self.updated),
            "unchanged": dict(self.unchanged),
            "previous": dict(self.previous),
        }
