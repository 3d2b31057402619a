"""Run settings: defaults, environment overrides, CLI overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from depsync.exceptions import ConfigError

ECOSYSTEMS = ("pypi", "npm")
MATCH_STRATEGIES = ("range", "exact")

DEFAULT_PYPI_URL = "https://pypi.org/pypi"
DEFAULT_NPM_URL = "https://registry.npmjs.org"


@dataclass(frozen=True)
class Settings:
    """Everything one sync run needs to know.

    ``update_existing`` lets resolved versions overwrite declared ones that
    differ; without it only newly discovered packages are merged back.
    ``persist=False`` is a dry run: the result is computed and reported but
    the manifest is never written.
    """

    ecosystem: str | None = None
    manifest: Path | None = None
    update_existing: bool = False
    persist: bool = True
    concurrency: int = 8
    max_retries: int = 3
    retry_base_delay: float = 1.0
    timeout: float = 30.0
    pypi_url: str = DEFAULT_PYPI_URL
    npm_url: str = DEFAULT_NPM_URL
    allow_prerelease: bool = False
    match: str = "range"
    exclude_dirs: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.ecosystem is not None and self.ecosystem not in ECOSYSTEMS:
            raise ConfigError(
                f"unknown ecosystem '{self.ecosystem}' (expected one of {', '.join(ECOSYSTEMS)})"
            )
        if self.match not in MATCH_STRATEGIES:
            raise ConfigError(
                f"unknown match strategy '{self.match}' "
                f"(expected one of {', '.join(MATCH_STRATEGIES)})"
            )
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")
        if self.max_retries < 1:
            raise ConfigError("max_retries must be at least 1")
        if self.retry_base_delay < 0 or self.timeout <= 0:
            raise ConfigError("retry delay must be >= 0 and timeout > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from ``DEPSYNC_*`` env vars, then apply *overrides*.

        Overrides whose value is ``None`` are ignored so that unset CLI
        options fall through to the environment or the default.
        """
        values: dict[str, Any] = {}
        env_map = {
            "ecosystem": ("DEPSYNC_ECOSYSTEM", str),
            "concurrency": ("DEPSYNC_CONCURRENCY", int),
            "max_retries": ("DEPSYNC_MAX_RETRIES", int),
            "retry_base_delay": ("DEPSYNC_RETRY_BASE_DELAY", float),
            "timeout": ("DEPSYNC_HTTP_TIMEOUT", float),
            "pypi_url": ("DEPSYNC_PYPI_URL", str),
            "npm_url": ("DEPSYNC_NPM_URL", str),
            "match": ("DEPSYNC_MATCH", str),
        }
        for name, (key, cast) in env_map.items():
            raw = os.environ.get(key)
            if raw is None or raw == "":
                continue
            try:
                values[name] = cast(raw)
            except ValueError:
                raise ConfigError(f"{key}={raw!r} is not a valid {cast.__name__}") from None

        known = {f.name for f in fields(cls)}
        for name, value in overrides.items():
            if name not in known:
                raise ConfigError(f"unknown setting '{name}'")
            if value is not None:
                values[name] = value

        if "exclude_dirs" in values:
            values["exclude_dirs"] = tuple(values["exclude_dirs"])
        if "manifest" in values:
            values["manifest"] = Path(values["manifest"])
        return cls(**values)
