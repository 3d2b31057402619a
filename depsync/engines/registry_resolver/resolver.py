"""Concurrent registry lookups, one per package name."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from typing import Protocol

import httpx
import structlog
from pydantic import ValidationError

from depsync.engines.models import PackageCandidate
from depsync.exceptions import PackageNotFoundError, RegistryError

log = structlog.get_logger("depsync.resolver")

_DEFAULT_CONCURRENCY = 8


class VersionLookup(Protocol):
    async def lookup(self, name: str) -> list[str]: ...


class RegistryResolver:
    """Turn package names into :class:`PackageCandidate` values.

    Lookups run concurrently, bounded by *concurrency*. A failing name
    never aborts the batch: it yields a candidate with no versions and an
    ``error`` describing what went wrong.
    """

    def __init__(self, client: VersionLookup, concurrency: int = _DEFAULT_CONCURRENCY) -> None:
        self._client = client
        self._concurrency = max(1, concurrency)

    async def lookup_one(self, name: str) -> PackageCandidate:
        try:
            versions = await self._client.lookup(name)
        except PackageNotFoundError:
            log.info("resolver.not_found", package=name)
            return PackageCandidate(name=name, error="not found", not_found=True)
        except (RegistryError, httpx.HTTPError, ValidationError, ValueError) as exc:
            log.warning("resolver.lookup_failed", package=name, error=str(exc))
            return PackageCandidate(name=name, error=f"{type(exc).__name__}: {exc}")
        return PackageCandidate(name=name, versions=tuple(dict.fromkeys(versions)))

    async def iter_candidates(self, names: Iterable[str]) -> AsyncIterator[PackageCandidate]:
        """Yield one candidate per distinct name, in completion order.

        Leaving the iterator early (or being cancelled) cancels every
        lookup still in flight.
        """
        sem = asyncio.Semaphore(self._concurrency)

        async def _run_one(name: str) -> PackageCandidate:
            async with sem:
                return await self.lookup_one(name)

        tasks = [asyncio.create_task(_run_one(n), name=f"lookup-{n}") for n in dict.fromkeys(names)]
        try:
            for fut in asyncio.as_completed(tasks):
                yield await fut
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def resolve(self, names: Iterable[str]) -> list[PackageCandidate]:
        """Look up every name; return only once all of them have a result.

        The returned list is sorted by name, independent of arrival order.
        """
        candidates = [c async for c in self.iter_candidates(names)]
        log.debug(
            "resolver.done",
            requested=len(candidates),
            failed=sum(1 for c in candidates if c.error),
        )
        return sorted(candidates, key=lambda c: c.name)
