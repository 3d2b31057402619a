"""Tests for ProgressTracker."""

from __future__ import annotations

import time

import pytest

from depsync.progress import (
    EXTRACTION_COMPLETE,
    MILESTONES,
    RECONCILIATION_COMPLETE,
    REGISTRY_RESULTS_AVAILABLE,
    ProgressTracker,
)


class TestProgressTracker:
    def test_basic_flow(self):
        tracker = ProgressTracker()
        tracker.start_phase("extraction")
        tracker.complete_phase("extraction", detail="packages=3")

        summary = tracker.get_summary()
        assert len(summary["phases"]) == 1
        assert summary["phases"][0]["status"] == "completed"
        assert summary["phases"][0]["detail"] == "packages=3"

    def test_fail_phase(self):
        tracker = ProgressTracker()
        tracker.start_phase("resolution")
        tracker.fail_phase("resolution", "cancelled")

        summary = tracker.get_summary()
        assert summary["phases"][0]["status"] == "failed"
        assert summary["phases"][0]["error"] == "cancelled"

    def test_skip_phase(self):
        tracker = ProgressTracker()
        tracker.skip_phase("resolution", "no packages discovered")

        summary = tracker.get_summary()
        assert summary["phases"][0]["status"] == "skipped"
        assert summary["phases"][0]["duration"] is None

    def test_duration(self):
        tracker = ProgressTracker()
        tracker.start_phase("test")
        time.sleep(0.02)
        tracker.complete_phase("test")

        p = tracker.phases[0]
        assert p.duration is not None
        assert p.duration >= 0.01

    def test_callback(self):
        events = []
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: events.append((p.phase, p.status)))

        tracker.start_phase("a")
        tracker.complete_phase("a")

        assert events == [("a", "running"), ("a", "completed")]

    def test_phase_callback_error_swallowed(self):
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: 1 / 0)
        tracker.start_phase("a")
        tracker.complete_phase("a")
        assert tracker.phases[0].status == "completed"

    def test_unknown_phase_ignored(self):
        tracker = ProgressTracker()
        tracker.complete_phase("never-started")
        assert tracker.phases == []


class TestMilestones:
    def test_in_order(self):
        seen = []
        tracker = ProgressTracker()
        tracker.milestone_callbacks.append(seen.append)

        tracker.reach(EXTRACTION_COMPLETE, ("a",))
        tracker.reach(REGISTRY_RESULTS_AVAILABLE, [])
        tracker.reach(RECONCILIATION_COMPLETE, None)

        assert [m.name for m in seen] == list(MILESTONES)
        assert seen[0].payload == ("a",)
        assert tracker.get_summary()["milestones"] == list(MILESTONES)

    def test_out_of_order_rejected(self):
        tracker = ProgressTracker()
        with pytest.raises(ValueError):
            tracker.reach(REGISTRY_RESULTS_AVAILABLE, [])

    def test_no_repeat(self):
        tracker = ProgressTracker()
        tracker.reach(EXTRACTION_COMPLETE, ())
        with pytest.raises(ValueError):
            tracker.reach(EXTRACTION_COMPLETE, ())

    def test_nothing_after_last(self):
        tracker = ProgressTracker()
        for name in MILESTONES:
            tracker.reach(name, None)
        with pytest.raises(ValueError):
            tracker.reach(EXTRACTION_COMPLETE, None)

    def test_milestone_callback_error_propagates(self):
        tracker = ProgressTracker()
        tracker.milestone_callbacks.append(lambda m: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            tracker.reach(EXTRACTION_COMPLETE, ())
        assert [m.name for m in tracker.milestones] == [EXTRACTION_COMPLETE]
