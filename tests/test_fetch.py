"""Tests for remote image fetching."""

import httpx
import pytest

from conftest import mock_fetcher
from resize_service.exceptions import SourceFetchError
from resize_service.services.fetch import ImageFetcher


class TestImageFetcher:
    async def test_fetch_success(self, png_bytes):
        def handler(request):
            return httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"})

        fetcher = mock_fetcher(handler)
        assert await fetcher.fetch("https://img.test/a.png") == png_bytes

    async def test_non_2xx(self):
        fetcher = mock_fetcher(lambda request: httpx.Response(404))
        with pytest.raises(SourceFetchError, match="404"):
            await fetcher.fetch("https://img.test/missing.png")

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        fetcher = mock_fetcher(handler)
        with pytest.raises(SourceFetchError, match="timed out"):
            await fetcher.fetch("https://img.test/slow.png")

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        fetcher = mock_fetcher(handler)
        with pytest.raises(SourceFetchError):
            await fetcher.fetch("https://img.test/down.png")

    async def test_empty_body(self):
        fetcher = mock_fetcher(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(SourceFetchError, match="empty"):
            await fetcher.fetch("https://img.test/empty.png")

    async def test_rejects_non_http_scheme(self):
        fetcher = mock_fetcher(lambda request: httpx.Response(200, content=b"x"))
        with pytest.raises(SourceFetchError, match="scheme"):
            await fetcher.fetch("file:///etc/passwd")

    async def test_rejects_missing_host(self):
        fetcher = mock_fetcher(lambda request: httpx.Response(200, content=b"x"))
        with pytest.raises(SourceFetchError, match="host"):
            await fetcher.fetch("http://")

    async def test_client_created_on_first_use(self):
        fetcher = ImageFetcher()
        assert fetcher._client is None
        client = fetcher.client
        assert fetcher.client is client
        await fetcher.aclose()
        assert fetcher._client is None

    async def test_injected_client_left_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        fetcher = ImageFetcher(client=client)
        await fetcher.aclose()
        assert not client.is_closed
        await client.aclose()
