"""Pydantic models for the registry payloads we consume."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PyPIReleaseFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filename: str = ""
    yanked: bool = False


class PyPIInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    version: str


class PyPIProject(BaseModel):
    """``GET /pypi/<name>/json``."""

    model_config = ConfigDict(extra="ignore")

    info: PyPIInfo
    releases: dict[str, list[PyPIReleaseFile]] = Field(default_factory=dict)

    def available_versions(self) -> list[str]:
        """Versions with at least one file that has not been yanked."""
        return [
            version
            for version, files in self.releases.items()
            if files and not all(f.yanked for f in files)
        ]


class NpmVersion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: str
    deprecated: Any = None


class NpmPackument(BaseModel):
    """``GET /<name>`` on the npm registry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: dict[str, NpmVersion] = Field(default_factory=dict)

    def available_versions(self) -> list[str]:
        """Published versions that are not deprecated."""
        return [key for key, meta in self.versions.items() if not meta.deprecated]
