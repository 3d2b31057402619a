"""Custom exceptions for depsync."""

from __future__ import annotations

from pathlib import Path


class DepsyncError(Exception):
    """Base exception for all depsync errors."""


class ConfigError(DepsyncError):
    """Raised when a setting has an invalid value."""


class ScanError(DepsyncError):
    """Raised when the source tree root cannot be scanned at all."""

    def __init__(self, root: Path | str, reason: str) -> None:
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"cannot scan {self.root}: {reason}")


class ManifestError(DepsyncError):
    """Raised when a manifest cannot be read, parsed or written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"manifest {self.path}: {reason}")


class RegistryError(DepsyncError):
    """Base exception for package registry lookups."""


class PackageNotFoundError(RegistryError):
    """Raised when the registry has no package with the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"package '{name}' not found in registry")
