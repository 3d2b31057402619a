"""Async package-registry client base with retries and backoff."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from depsync.exceptions import PackageNotFoundError

log = structlog.get_logger("depsync.registry")

_DEFAULT_MAX_RETRIES = 3
_DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
_MAX_RETRY_AFTER = 60  # seconds


class RegistryClient:
    """Thin async wrapper around a package registry's HTTP API.

    Subclasses implement :meth:`package_path` and :meth:`parse_versions`;
    :meth:`lookup` takes care of transport, retries and 404 handling.
    """

    ecosystem: str = ""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        retry_base_delay: float = _DEFAULT_RETRY_BASE_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json", "User-Agent": "depsync"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def lookup(self, name: str) -> list[str]:
        """Return every published version string of *name*.

        Raises :class:`PackageNotFoundError` when the registry answers 404,
        and the last transport / HTTP error once retries are exhausted.
        """
        response = await self._request_with_retry(self.package_path(name), name)
        return self.parse_versions(name, response.json())

    # ── subclass hooks ─────────────────────────────────────────────────────

    def package_path(self, name: str) -> str:
        raise NotImplementedError

    def parse_versions(self, name: str, payload: Any) -> list[str]:
        raise NotImplementedError

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(self, url: str, name: str) -> httpx.Response:
        """GET with exponential backoff on 5xx, 429, timeouts and connection errors."""
        last_exc: Exception | None = None
        for attempt in range(self._max_retries):
            wait: float | None = None
            try:
                resp = await self._client.get(url)

                if resp.status_code == 404:
                    raise PackageNotFoundError(name)

                if resp.status_code == 429:
                    wait = self._get_retry_after(resp)
                    log.warning(
                        "registry.rate_limit",
                        package=name,
                        wait_seconds=wait,
                        attempt=attempt + 1,
                        max_retries=self._max_retries,
                    )
                    last_exc = httpx.HTTPStatusError(
                        "429 Too Many Requests", request=resp.request, response=resp
                    )
                elif resp.status_code < 500:
                    resp.raise_for_status()
                    return resp
                else:
                    # 5xx: retry
                    log.warning(
                        "registry.server_error",
                        package=name,
                        status=resp.status_code,
                        attempt=attempt + 1,
                        max_retries=self._max_retries,
                    )
                    last_exc = httpx.HTTPStatusError(
                        f"{resp.status_code}", request=resp.request, response=resp
                    )
            except httpx.TransportError as exc:
                log.warning(
                    "registry.transport_error",
                    package=name,
                    error=type(exc).__name__,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
                last_exc = exc

            if attempt < self._max_retries - 1:
                delay = wait if wait is not None else self._retry_base_delay * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _get_retry_after(response: httpx.Response) -> float | None:
        """Seconds from a ``Retry-After`` header, capped; ``None`` if absent."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is None:
            return None
        try:
            return float(min(max(int(retry_after), 0), _MAX_RETRY_AFTER))
        except (ValueError, TypeError):
            return None
