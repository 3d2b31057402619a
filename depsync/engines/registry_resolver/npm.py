"""npm registry client."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from depsync.core.config import DEFAULT_NPM_URL
from depsync.engines.registry_resolver.client import RegistryClient
from depsync.engines.registry_resolver.schema import NpmPackument


class NpmClient(RegistryClient):
    ecosystem = "npm"

    def __init__(self, base_url: str = DEFAULT_NPM_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)

    def package_path(self, name: str) -> str:
        # Scoped packages keep the "@" but encode the slash: @scope%2Fname
        return "/" + quote(name, safe="@")

    def parse_versions(self, name: str, payload: Any) -> list[str]:
        return NpmPackument.model_validate(payload).available_versions()
