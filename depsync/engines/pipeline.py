"""Dependency pipeline orchestrator: scan, resolve, select, reconcile."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from depsync.engines.models import PackageCandidate, ReconciliationResult, ResolutionFailure
from depsync.engines.reconciler.matchers import RangeMatcher, VersionMatcher
from depsync.engines.reconciler.reconciler import reconcile
from depsync.engines.registry_resolver.resolver import RegistryResolver, VersionLookup
from depsync.engines.source_scanner.registry import SourceExtractor
from depsync.engines.source_scanner.scanner import discover_packages
from depsync.engines.version_selector.selector import select_versions
from depsync.engines.versions import VersionParser, parse_pep440
from depsync.progress import (
    EXTRACTION_COMPLETE,
    RECONCILIATION_COMPLETE,
    REGISTRY_RESULTS_AVAILABLE,
    Milestone,
    PhaseProgress,
    ProgressTracker,
)

log = structlog.get_logger("depsync.pipeline")


@dataclass(frozen=True)
class PipelineResult:
    """Everything one run found out, from package names to classification."""

    packages: tuple[str, ...]
    candidates: tuple[PackageCandidate, ...]
    resolved: dict[str, str]
    unresolved: tuple[ResolutionFailure, ...]
    reconciliation: ReconciliationResult = field(default_factory=ReconciliationResult)

    @property
    def unresolved_names(self) -> list[str]:
        return [f.name for f in self.unresolved]


class DependencyPipeline:
    """
    Orchestrate the three-phase discovery pipeline.

    Phase 1 (extraction): walk the tree, collect registry package names.
    Phase 2 (resolution): look every name up concurrently.
    Phase 3 (reconciliation): pick versions, classify against declared.

    Each phase ends with a milestone carrying its output:
    ``extraction_complete`` (package names), ``registry_results_available``
    (candidates) and ``reconciliation_complete`` (the result).
    """

    def __init__(
        self,
        extractor: SourceExtractor,
        client: VersionLookup,
        *,
        concurrency: int = 8,
        matcher: VersionMatcher | None = None,
        normalize: Callable[[str], str] = str,
        allow_prerelease: bool = False,
        parse_version: VersionParser = parse_pep440,
        exclude_dirs: Iterable[str] = (),
    ) -> None:
        self.extractor = extractor
        self.resolver = RegistryResolver(client, concurrency=concurrency)
        self.matcher = matcher or RangeMatcher()
        self.normalize = normalize
        self.allow_prerelease = allow_prerelease
        self.parse_version = parse_version
        self.exclude_dirs = tuple(exclude_dirs)
        self.progress = ProgressTracker()

    def _new_progress(
        self,
        on_milestone: Callable[[Milestone], None] | None,
        on_phase: Callable[[PhaseProgress], None] | None,
    ) -> ProgressTracker:
        tracker = ProgressTracker()
        if on_milestone is not None:
            tracker.milestone_callbacks.append(on_milestone)
        if on_phase is not None:
            tracker.callbacks.append(on_phase)
        return tracker

    async def run(
        self,
        root: Path | str,
        declared: Mapping[str, str] | None = None,
        *,
        on_milestone: Callable[[Milestone], None] | None = None,
        on_phase: Callable[[PhaseProgress], None] | None = None,
    ) -> PipelineResult:
        """Run the whole pipeline against *root*.

        A :class:`~depsync.exceptions.ScanError` aborts before any registry
        call. Packages that cannot be resolved are reported in
        ``unresolved``; a run where nothing resolves still completes.
        Cancellation abandons in-flight lookups and produces no result.
        """
        progress = self._new_progress(on_milestone, on_phase)
        self.progress = progress  # expose last run's progress for callers
        declared = dict(declared or {})
        phase = "extraction"

        try:
            # Phase 1: extraction, fully collected before resolution starts
            progress.start_phase(phase)
            packages = tuple(
                await asyncio.to_thread(
                    discover_packages, Path(root), self.extractor, self.exclude_dirs
                )
            )
            progress.complete_phase(phase, detail=f"packages={len(packages)}")
            progress.reach(EXTRACTION_COMPLETE, packages)

            # Phase 2: resolution
            phase = "resolution"
            if packages:
                progress.start_phase(phase)
                candidates = tuple(await self.resolver.resolve(packages))
                failed = sum(1 for c in candidates if not c.versions)
                progress.complete_phase(
                    phase, detail=f"lookups={len(candidates)}, empty={failed}"
                )
            else:
                progress.skip_phase(phase, "no packages discovered")
                candidates = ()
            progress.reach(REGISTRY_RESULTS_AVAILABLE, candidates)

            # Phase 3: selection + reconciliation
            phase = "reconciliation"
            progress.start_phase(phase)
            selection = select_versions(
                candidates, allow_prerelease=self.allow_prerelease, parse=self.parse_version
            )
            result = reconcile(
                selection.resolved, declared, matcher=self.matcher, normalize=self.normalize
            )
            progress.complete_phase(
                phase,
                detail=f"added={len(result.added)}, updated={len(result.updated)}, "
                f"unchanged={len(result.unchanged)}, unresolved={len(selection.failures)}",
            )
            progress.reach(RECONCILIATION_COMPLETE, result)
        except asyncio.CancelledError:
            progress.fail_phase(phase, "cancelled")
            log.info("pipeline.cancelled", phase=phase)
            raise
        except Exception as exc:
            progress.fail_phase(phase, str(exc))
            raise

        return PipelineResult(
            packages=packages,
            candidates=candidates,
            resolved=selection.resolved,
            unresolved=tuple(selection.failures),
            reconciliation=result,
        )
