"""Registry resolver engine: look package names up in a package registry."""

from depsync.engines.registry_resolver.client import RegistryClient
from depsync.engines.registry_resolver.npm import NpmClient
from depsync.engines.registry_resolver.pypi import PyPIClient
from depsync.engines.registry_resolver.resolver import RegistryResolver

__all__ = ["NpmClient", "PyPIClient", "RegistryClient", "RegistryResolver"]
