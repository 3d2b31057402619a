"""Tests for sync_project(): manifest in, pipeline, manifest out."""

from __future__ import annotations

import asyncio
import json

import pytest

from depsync import service
from depsync.core.config import Settings
from depsync.exceptions import ManifestError, ScanError
from depsync.progress import MILESTONES
from depsync.service import sync_project

_VERSIONS = {
    "PyYAML": ["6.0.1", "6.0.2"],
    "click": ["8.1.7"],
    "requests": ["2.31.0", "2.32.3"],
}


@pytest.fixture
def requirements(py_project):
    path = py_project / "requirements.txt"
    path.write_text("requests==2.31.0\n")
    return path


class TestSyncProject:
    @pytest.mark.anyio
    async def test_adds_new_packages_only(self, py_project, requirements, fake_registry):
        report = await sync_project(py_project, Settings(), client=fake_registry(_VERSIONS))

        assert report.ecosystem == "pypi"
        assert report.manifest_path == requirements
        assert report.changes == {"PyYAML": "6.0.2", "click": "8.1.7"}
        assert report.written
        assert report.pipeline.reconciliation.updated == {"requests": "2.32.3"}
        assert requirements.read_text() == "requests==2.31.0\nclick==8.1.7\nPyYAML==6.0.2\n"

    @pytest.mark.anyio
    async def test_update_existing(self, py_project, requirements, fake_registry):
        report = await sync_project(
            py_project, Settings(update_existing=True), client=fake_registry(_VERSIONS)
        )
        assert report.changes == {"PyYAML": "6.0.2", "click": "8.1.7", "requests": "2.32.3"}
        assert requirements.read_text().splitlines()[0] == "requests==2.32.3"

    @pytest.mark.anyio
    async def test_repeat_dry_run_identical(self, py_project, requirements, fake_registry):
        client = fake_registry(_VERSIONS, delays={"click": 0.03, "requests": 0.01})
        first = await sync_project(py_project, Settings(persist=False), client=client)

        client.delays = {"PyYAML": 0.03, "click": 0.01}
        second = await sync_project(py_project, Settings(persist=False), client=client)

        assert first.pipeline == second.pipeline
        assert first.to_dict() == second.to_dict()
        assert requirements.read_text() == "requests==2.31.0\n"

    @pytest.mark.anyio
    async def test_dry_run_leaves_manifest(self, py_project, requirements, fake_registry):
        report = await sync_project(
            py_project, Settings(persist=False), client=fake_registry(_VERSIONS)
        )
        assert report.changes
        assert not report.written
        assert not report.persist
        assert requirements.read_text() == "requests==2.31.0\n"

    @pytest.mark.anyio
    async def test_nothing_to_write(self, tmp_path, fake_registry):
        (tmp_path / "app.py").write_text("import requests\n")
        path = tmp_path / "requirements.txt"
        path.write_text("requests>=2.0  # any 2.x\n")

        report = await sync_project(tmp_path, Settings(), client=fake_registry(_VERSIONS))

        assert report.changes == {}
        assert not report.written
        assert report.pipeline.reconciliation.unchanged == {"requests": "2.32.3"}
        assert path.read_text() == "requests>=2.0  # any 2.x\n"

    @pytest.mark.anyio
    async def test_every_package_in_exactly_one_bucket(self, py_project, requirements, fake_registry):
        versions = dict(_VERSIONS)
        del versions["click"]
        report = await sync_project(py_project, Settings(), client=fake_registry(versions))

        result = report.pipeline.reconciliation
        buckets = [
            list(result.added),
            list(result.updated),
            list(result.unchanged),
            report.pipeline.unresolved_names,
        ]
        seen = [name for bucket in buckets for name in bucket]
        assert sorted(seen) == sorted(report.pipeline.packages)
        assert report.pipeline.unresolved_names == ["click"]

    @pytest.mark.anyio
    async def test_no_manifest_reports_error(self, py_project, fake_registry):
        report = await sync_project(py_project, Settings(), client=fake_registry(_VERSIONS))

        assert report.manifest_path is None
        assert "no pypi manifest" in report.manifest_error
        assert not report.written
        assert report.pipeline.reconciliation.added == {
            "PyYAML": "6.0.2",
            "click": "8.1.7",
            "requests": "2.32.3",
        }

    @pytest.mark.anyio
    async def test_unreadable_manifest_skips_persistence(self, tmp_path, fake_registry):
        (tmp_path / "index.js").write_text("require('express');\n")
        path = tmp_path / "package.json"
        path.write_text("{broken")

        report = await sync_project(
            tmp_path, Settings(), client=fake_registry({"express": ["4.19.2"]})
        )

        assert report.ecosystem == "npm"
        assert "invalid JSON" in report.manifest_error
        assert report.pipeline.reconciliation.added == {"express": "4.19.2"}
        assert not report.written
        assert path.read_text() == "{broken"

    @pytest.mark.anyio
    async def test_ecosystem_mismatch(self, py_project, requirements, fake_registry):
        report = await sync_project(
            py_project,
            Settings(ecosystem="npm", manifest=requirements),
            client=fake_registry({}),
        )
        assert "not npm" in report.manifest_error
        assert not report.written
        assert requirements.read_text() == "requests==2.31.0\n"

    @pytest.mark.anyio
    async def test_write_failure_reported(self, py_project, requirements, fake_registry, monkeypatch):
        def fail(manifest, updates):
            raise ManifestError(manifest.path, "disk full")

        monkeypatch.setattr(service, "write_manifest", fail)
        report = await sync_project(py_project, Settings(), client=fake_registry(_VERSIONS))

        assert not report.written
        assert "disk full" in report.manifest_error

    @pytest.mark.anyio
    async def test_npm_project(self, tmp_path, fake_registry):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "index.js").write_text(
            "import express from 'express';\nimport _ from 'lodash/fp';\n"
        )
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"name": "app", "dependencies": {"express": "^4.18.0"}}, indent=2))

        client = fake_registry({"express": ["4.18.2", "4.19.2"], "lodash": ["4.17.21"]})
        report = await sync_project(tmp_path, Settings(), client=client)

        assert report.pipeline.reconciliation.unchanged == {"express": "4.19.2"}
        assert report.changes == {"lodash": "4.17.21"}
        data = json.loads(path.read_text())
        assert data["dependencies"] == {"express": "^4.18.0", "lodash": "4.17.21"}

    @pytest.mark.anyio
    async def test_milestones_forwarded(self, py_project, requirements, fake_registry):
        seen = []
        report = await sync_project(
            py_project, Settings(), client=fake_registry(_VERSIONS), on_milestone=seen.append
        )
        assert [m.name for m in seen] == list(MILESTONES)
        assert report.summary["milestones"] == list(MILESTONES)

    @pytest.mark.anyio
    async def test_passed_client_not_closed(self, py_project, requirements, fake_registry):
        client = fake_registry(_VERSIONS)
        await sync_project(py_project, Settings(), client=client)
        assert not client.closed

    @pytest.mark.anyio
    async def test_scan_error_propagates(self, tmp_path, fake_registry):
        client = fake_registry(_VERSIONS)
        with pytest.raises(ScanError):
            await sync_project(tmp_path / "missing", Settings(), client=client)
        assert client.calls == []

    @pytest.mark.anyio
    async def test_report_to_dict(self, py_project, requirements, fake_registry):
        report = await sync_project(py_project, Settings(), client=fake_registry(_VERSIONS))
        data = report.to_dict()
        assert data["manifest"] == str(requirements)
        assert data["added"] == {"PyYAML": "6.0.2", "click": "8.1.7"}
        assert data["previous"] == {"requests": "2.31.0"}
        assert data["written"] is True
        json.dumps(data)


class TestSyncCancellation:
    @pytest.mark.anyio
    async def test_cancel_leaves_manifest_untouched(self, py_project, requirements, fake_registry):
        client = fake_registry(_VERSIONS, delays={"requests": 3600})
        task = asyncio.create_task(sync_project(py_project, Settings(), client=client))

        while "requests" not in client.calls:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert requirements.read_text() == "requests==2.31.0\n"
