"""Tests for the registry clients, using httpx mocks instead of the network."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from depsync.engines.registry_resolver.client import RegistryClient
from depsync.engines.registry_resolver.npm import NpmClient
from depsync.engines.registry_resolver.pypi import PyPIClient
from depsync.exceptions import PackageNotFoundError

# ── helpers ──────────────────────────────────────────────────────────────


def _pypi_payload(releases: dict) -> dict:
    return {"info": {"name": "demo", "version": "9.9.9"}, "releases": releases}


def _npm_payload(versions: dict) -> dict:
    return {
        "name": "demo",
        "dist-tags": {"latest": "1.0.0"},
        "versions": {v: {"version": v, **meta} for v, meta in versions.items()},
    }


def _client_with(cls, handler, **kwargs):
    return cls(transport=httpx.MockTransport(handler), retry_base_delay=0, **kwargs)


def _bare_client() -> RegistryClient:
    client = PyPIClient.__new__(PyPIClient)
    client._client = AsyncMock()
    client._max_retries = 3
    client._retry_base_delay = 1.0
    return client


# ── PyPIClient ───────────────────────────────────────────────────────────


class TestPyPIClient:
    def test_package_path(self):
        client = PyPIClient.__new__(PyPIClient)
        assert client.package_path("requests") == "/requests/json"

    @pytest.mark.anyio
    async def test_lookup_lists_available_versions(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(
                200,
                json=_pypi_payload(
                    {
                        "1.0.0": [{"filename": "a.whl", "yanked": False}],
                        "1.1.0": [{"filename": "b.whl", "yanked": True}],
                        "1.2.0": [],
                        "2.0.0b1": [{"filename": "c.whl"}],
                    }
                ),
            )

        async with _client_with(PyPIClient, handler) as client:
            versions = await client.lookup("demo")

        assert versions == ["1.0.0", "2.0.0b1"]
        assert seen == ["/pypi/demo/json"]

    @pytest.mark.anyio
    async def test_lookup_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        async with _client_with(PyPIClient, handler) as client:
            with pytest.raises(PackageNotFoundError):
                await client.lookup("no-such-package")

    @pytest.mark.anyio
    async def test_404_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        async with _client_with(PyPIClient, handler) as client:
            with pytest.raises(PackageNotFoundError):
                await client.lookup("x")
        assert len(calls) == 1


# ── NpmClient ────────────────────────────────────────────────────────────


class TestNpmClient:
    def test_scoped_package_path(self):
        client = NpmClient.__new__(NpmClient)
        assert client.package_path("@babel/core") == "/@babel%2Fcore"

    def test_plain_package_path(self):
        client = NpmClient.__new__(NpmClient)
        assert client.package_path("express") == "/express"

    @pytest.mark.anyio
    async def test_lookup_skips_deprecated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=_npm_payload(
                    {
                        "1.0.0": {},
                        "1.1.0": {"deprecated": "use 1.2.0"},
                        "1.2.0": {},
                    }
                ),
            )

        async with _client_with(NpmClient, handler) as client:
            assert await client.lookup("demo") == ["1.0.0", "1.2.0"]

    @pytest.mark.anyio
    async def test_malformed_payload_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        async with _client_with(NpmClient, handler) as client:
            with pytest.raises(ValueError):
                await client.lookup("demo")


# ── retry behaviour ──────────────────────────────────────────────────────


class TestRetry:
    @pytest.mark.anyio
    async def test_retry_on_server_error(self):
        client = _bare_client()

        error_resp = MagicMock(spec=httpx.Response)
        error_resp.status_code = 502
        error_resp.request = MagicMock()

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200
        ok_resp.raise_for_status = MagicMock()

        client._client.get = AsyncMock(side_effect=[error_resp, ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await client._request_with_retry("/x/json", "x")
            assert result.status_code == 200
            assert client._client.get.call_count == 2
            mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.anyio
    async def test_retry_exhausted(self):
        client = _bare_client()

        error_resp = MagicMock(spec=httpx.Response)
        error_resp.status_code = 503
        error_resp.request = MagicMock()

        client._client.get = AsyncMock(return_value=error_resp)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(httpx.HTTPStatusError):
                await client._request_with_retry("/x/json", "x")
            assert client._client.get.call_count == 3
            # backoff doubles; no sleep after the last attempt
            assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.anyio
    async def test_retry_on_connect_error(self):
        client = _bare_client()

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200
        ok_resp.raise_for_status = MagicMock()

        client._client.get = AsyncMock(side_effect=[httpx.ConnectError("refused"), ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = await client._request_with_retry("/x/json", "x")
            assert result.status_code == 200

    @pytest.mark.anyio
    async def test_timeout_exhausted_raises_transport_error(self):
        client = _bare_client()
        client._client.get = AsyncMock(side_effect=httpx.ReadTimeout("timeout"))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(httpx.TimeoutException):
                await client._request_with_retry("/x/json", "x")
        assert client._client.get.call_count == 3

    @pytest.mark.anyio
    async def test_429_honours_retry_after(self):
        client = _bare_client()

        limited = MagicMock(spec=httpx.Response)
        limited.status_code = 429
        limited.headers = {"Retry-After": "7"}
        limited.request = MagicMock()

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200
        ok_resp.raise_for_status = MagicMock()

        client._client.get = AsyncMock(side_effect=[limited, ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._request_with_retry("/x/json", "x")
            mock_sleep.assert_awaited_once_with(7.0)

    @pytest.mark.anyio
    async def test_other_4xx_not_retried(self):
        client = _bare_client()

        forbidden = MagicMock(spec=httpx.Response)
        forbidden.status_code = 403
        forbidden.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("403", request=MagicMock(), response=forbidden)
        )
        client._client.get = AsyncMock(return_value=forbidden)

        with pytest.raises(httpx.HTTPStatusError):
            await client._request_with_retry("/x/json", "x")
        assert client._client.get.call_count == 1

    def test_get_retry_after(self):
        resp = MagicMock()
        resp.headers = {"Retry-After": "5"}
        assert RegistryClient._get_retry_after(resp) == 5.0

    def test_get_retry_after_capped(self):
        resp = MagicMock()
        resp.headers = {"Retry-After": "3600"}
        assert RegistryClient._get_retry_after(resp) == 60.0

    def test_get_retry_after_missing_or_garbage(self):
        resp = MagicMock()
        resp.headers = {}
        assert RegistryClient._get_retry_after(resp) is None
        resp.headers = {"Retry-After": "soon"}
        assert RegistryClient._get_retry_after(resp) is None
