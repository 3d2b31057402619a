"""Per-ecosystem wiring: extractor, registry client, name rules, range dialect."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from packaging.utils import canonicalize_name

from depsync.core.config import Settings
from depsync.engines.reconciler.matchers import ExactMatcher, RangeMatcher, VersionMatcher
from depsync.engines.registry_resolver.client import RegistryClient
from depsync.engines.registry_resolver.npm import NpmClient
from depsync.engines.registry_resolver.pypi import PyPIClient
from depsync.engines.source_scanner.registry import SourceExtractor, get_extractor
from depsync.engines.versions import VersionParser, get_version_parser


@dataclass(frozen=True)
class Ecosystem:
    name: str
    range_dialect: str
    normalize: Callable[[str], str]
    client_class: type[RegistryClient]

    @property
    def extractor(self) -> SourceExtractor:
        return get_extractor(self.name)

    @property
    def parse_version(self) -> VersionParser:
        return get_version_parser(self.range_dialect)

    def registry_url(self, settings: Settings) -> str:
        return settings.pypi_url if self.name == "pypi" else settings.npm_url

    def create_client(self, settings: Settings) -> RegistryClient:
        return self.client_class(
            self.registry_url(settings),
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            retry_base_delay=settings.retry_base_delay,
        )

    def matcher(self, strategy: str = "range") -> VersionMatcher:
        if strategy == "exact":
            return ExactMatcher()
        return RangeMatcher(self.range_dialect)


def _pypi_name(name: str) -> str:
    return str(canonicalize_name(name))


ECOSYSTEMS: dict[str, Ecosystem] = {
    "pypi": Ecosystem(
        name="pypi",
        range_dialect="pep440",
        normalize=_pypi_name,
        client_class=PyPIClient,
    ),
    "npm": Ecosystem(
        name="npm",
        range_dialect="npm",
        normalize=str.lower,
        client_class=NpmClient,
    ),
}


def get_ecosystem(name: str) -> Ecosystem:
    try:
        return ECOSYSTEMS[name]
    except KeyError:
        raise ValueError(f"unknown ecosystem '{name}'") from None
