"""Progress tracking for the sync pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog

log = structlog.get_logger("depsync.progress")

EXTRACTION_COMPLETE = "extraction_complete"
REGISTRY_RESULTS_AVAILABLE = "registry_results_available"
RECONCILIATION_COMPLETE = "reconciliation_complete"

MILESTONES = (EXTRACTION_COMPLETE, REGISTRY_RESULTS_AVAILABLE, RECONCILIATION_COMPLETE)


@dataclass
class PhaseProgress:
    phase: str
    status: str = "pending"  # "pending" | "running" | "completed" | "failed" | "skipped"
    start_time: float | None = None
    end_time: float | None = None
    detail: str = ""
    error: str | None = None

    @property
    def duration(self) -> float | None:
        if self.start_time is not None and self.end_time is not None:
            return round(self.end_time - self.start_time, 2)
        return None


@dataclass(frozen=True)
class Milestone:
    """A pipeline boundary that has been crossed, with that stage's output."""

    name: str
    payload: Any


class ProgressTracker:
    """Track pipeline phases and announce milestones to subscribers."""

    def __init__(self) -> None:
        self.phases: list[PhaseProgress] = []
        self.milestones: list[Milestone] = []
        self._by_name: dict[str, PhaseProgress] = {}
        self.callbacks: list[Callable[[PhaseProgress], None]] = []
        self.milestone_callbacks: list[Callable[[Milestone], None]] = []

    def start_phase(self, phase: str) -> None:
        p = PhaseProgress(phase=phase, status="running", start_time=time.monotonic())
        self.phases.append(p)
        self._by_name[phase] = p
        self._notify(p)

    def complete_phase(self, phase: str, detail: str = "") -> None:
        p = self._by_name.get(phase)
        if p:
            p.status = "completed"
            p.end_time = time.monotonic()
            p.detail = detail
            self._notify(p)

    def fail_phase(self, phase: str, error: str) -> None:
        p = self._by_name.get(phase)
        if p:
            p.status = "failed"
            p.end_time = time.monotonic()
            p.error = error
            self._notify(p)

    def skip_phase(self, phase: str, reason: str) -> None:
        p = PhaseProgress(phase=phase, status="skipped", detail=reason)
        self.phases.append(p)
        self._by_name[phase] = p
        self._notify(p)

    def reach(self, name: str, payload: Any) -> None:
        """Record milestone *name*; milestones must arrive in pipeline order."""
        expected = MILESTONES[len(self.milestones)] if len(self.milestones) < len(MILESTONES) else None
        if name != expected:
            raise ValueError(f"milestone {name!r} out of order (expected {expected!r})")
        milestone = Milestone(name=name, payload=payload)
        self.milestones.append(milestone)
        log.debug("pipeline.milestone", milestone=name)
        for cb in self.milestone_callbacks:
            cb(milestone)

    def get_summary(self) -> dict[str, Any]:
        total_duration = sum(p.duration or 0 for p in self.phases)
        return {
            "phases": [
                {
                    "phase": p.phase,
                    "status": p.status,
                    "duration": p.duration,
                    "detail": p.detail,
                    "error": p.error,
                }
                for p in self.phases
            ],
            "milestones": [m.name for m in self.milestones],
            "total_duration": round(total_duration, 2),
        }

    def _notify(self, p: PhaseProgress) -> None:
        for cb in self.callbacks:
            try:
                cb(p)
            except Exception:
                log.debug("progress.callback_error", phase=p.phase, exc_info=True)
