"""Sync service: manifest in, pipeline, merged manifest out."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import structlog

from depsync.core.config import Settings
from depsync.ecosystems import get_ecosystem
from depsync.engines.pipeline import DependencyPipeline, PipelineResult
from depsync.engines.registry_resolver.resolver import VersionLookup
from depsync.exceptions import ManifestError
from depsync.manifest import (
    Manifest,
    discover_manifest,
    infer_ecosystem,
    read_manifest,
    write_manifest,
)
from depsync.progress import Milestone, PhaseProgress

log = structlog.get_logger("depsync.service")


@dataclass
class SyncReport:
    """Outcome of one sync run, handed to the presenter."""

    pipeline: PipelineResult
    ecosystem: str
    manifest_path: Path | None
    changes: dict[str, str]
    persist: bool = True
    written: bool = False
    manifest_error: str | None = None
    summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ecosystem": self.ecosystem,
            "manifest": str(self.manifest_path) if self.manifest_path else None,
            "packages": list(self.pipeline.packages),
            "resolved": dict(self.pipeline.resolved),
            **self.pipeline.reconciliation.to_dict(),
            "unresolved": [asdict(f) for f in self.pipeline.unresolved],
            "changes": dict(self.changes),
            "written": self.written,
            "manifest_error": self.manifest_error,
        }


def _load_manifest(
    root: Path, settings: Settings
) -> tuple[str, Path | None, Manifest | None, str | None]:
    """Locate and read the manifest; a failure is reported, not raised."""
    manifest_path = settings.manifest or discover_manifest(root, settings.ecosystem)
    try:
        ecosystem = settings.ecosystem or infer_ecosystem(root, manifest_path)
    except ManifestError as exc:
        return infer_ecosystem(root), manifest_path, None, str(exc)

    if manifest_path is None:
        return ecosystem, None, None, f"no {ecosystem} manifest found in {root}"

    try:
        manifest = read_manifest(manifest_path)
    except ManifestError as exc:
        log.warning("service.manifest_unreadable", path=str(manifest_path), error=exc.reason)
        return ecosystem, manifest_path, None, str(exc)

    if manifest.ecosystem != ecosystem:
        return (
            ecosystem,
            manifest_path,
            None,
            f"manifest {manifest_path} is a {manifest.ecosystem} manifest, not {ecosystem}",
        )
    return ecosystem, manifest_path, manifest, None


async def sync_project(
    root: Path | str,
    settings: Settings,
    *,
    client: VersionLookup | None = None,
    on_milestone: Callable[[Milestone], None] | None = None,
    on_phase: Callable[[PhaseProgress], None] | None = None,
) -> SyncReport:
    """Discover, resolve and reconcile *root*'s dependencies.

    The manifest is read once before the pipeline and written at most
    once after it, only when ``settings.persist`` is set, the manifest was
    readable and there is something to merge. If the manifest cannot be
    read the pipeline still runs against an empty declared set and the
    error is carried in the report. A :class:`ScanError` or a
    cancellation propagates and nothing is written.
    """
    root = Path(root)
    ecosystem_name, manifest_path, manifest, manifest_error = _load_manifest(root, settings)
    ecosystem = get_ecosystem(ecosystem_name)
    declared = manifest.declared if manifest else {}

    own_client = client is None
    lookup = client or ecosystem.create_client(settings)
    pipeline = DependencyPipeline(
        ecosystem.extractor,
        lookup,
        concurrency=settings.concurrency,
        matcher=ecosystem.matcher(settings.match),
        normalize=ecosystem.normalize,
        allow_prerelease=settings.allow_prerelease,
        parse_version=ecosystem.parse_version,
        exclude_dirs=settings.exclude_dirs,
    )
    try:
        result = await pipeline.run(root, declared, on_milestone=on_milestone, on_phase=on_phase)
    finally:
        if own_client:
            await lookup.close()  # type: ignore[union-attr]

    changes = result.reconciliation.changes(settings.update_existing)
    report = SyncReport(
        pipeline=result,
        ecosystem=ecosystem_name,
        manifest_path=manifest_path,
        changes=changes,
        persist=settings.persist,
        manifest_error=manifest_error,
        summary=pipeline.progress.get_summary(),
    )

    if changes and settings.persist and manifest is not None:
        try:
            write_manifest(manifest, changes)
            report.written = True
            log.info("service.manifest_written", path=str(manifest.path), changes=len(changes))
        except ManifestError as exc:
            log.error("service.manifest_write_failed", path=str(manifest.path), error=exc.reason)
            report.manifest_error = str(exc)
    return report
