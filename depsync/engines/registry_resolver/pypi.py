"""PyPI JSON API client."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from depsync.core.config import DEFAULT_PYPI_URL
from depsync.engines.registry_resolver.client import RegistryClient
from depsync.engines.registry_resolver.schema import PyPIProject


class PyPIClient(RegistryClient):
    ecosystem = "pypi"

    def __init__(self, base_url: str = DEFAULT_PYPI_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)

    def package_path(self, name: str) -> str:
        return f"/{quote(name, safe='')}/json"

    def parse_versions(self, name: str, payload: Any) -> list[str]:
        return PyPIProject.model_validate(payload).available_versions()
