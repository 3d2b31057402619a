"""Shared pytest fixtures for depsync tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from depsync.exceptions import PackageNotFoundError


class FakeRegistry:
    """In-memory stand-in for a registry client.

    *packages* maps a name to its version list, or to an exception
    instance that :meth:`lookup` raises. Unknown names are not found.
    """

    def __init__(self, packages: dict, delays: dict | None = None) -> None:
        self.packages = packages
        self.delays = delays or {}
        self.calls: list[str] = []
        self.closed = False

    async def lookup(self, name: str) -> list[str]:
        self.calls.append(name)
        delay = self.delays.get(name)
        if delay:
            await asyncio.sleep(delay)
        value = self.packages.get(name)
        if value is None:
            raise PackageNotFoundError(name)
        if isinstance(value, BaseException):
            raise value
        return list(value)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_registry():
    return FakeRegistry


@pytest.fixture
def py_project(tmp_path: Path) -> Path:
    """A small Python project with stdlib, local, relative and third-party imports."""
    pkg = tmp_path / "myapp"
    pkg.mkdir()
    (pkg / "__init__.py").write_text("")
    (pkg / "core.py").write_text(
        "import os\n"
        "import requests\n"
        "from yaml import safe_load\n"
        "from . import helpers\n"
        "from myapp.helpers import thing\n"
    )
    (pkg / "helpers.py").write_text("import json\nimport requests\nthing = 1\n")
    (tmp_path / "main.py").write_text("import click\nfrom myapp import core\n")
    venv = tmp_path / ".venv" / "lib"
    venv.mkdir(parents=True)
    (venv / "vendored.py").write_text("import should_not_be_seen\n")
    return tmp_path
