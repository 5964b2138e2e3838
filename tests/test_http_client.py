"""
Test suite for the page fetching client
"""

import httpx
import pytest

from dpd.core.errors import DocumentLoadError
from dpd.utils.http_client import HTTPClient

PAGE = "<html><body><p>Act now</p></body></html>"


def make_client(handler, **kwargs):
    return HTTPClient(transport=httpx.MockTransport(handler), retry_delay=0, **kwargs)


class TestFetchDocument:

    @pytest.mark.asyncio
    async def test_fetch_html_page(self):
        seen = {}

        def handler(request):
            seen["user_agent"] = request.headers["user-agent"]
            return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})

        async with make_client(handler, user_agent="TestAgent/1.0") as client:
            page = await client.fetch_document("example.com/deals")

        assert page.url == "https://example.com/deals"
        assert page.final_url == "https://example.com/deals"
        assert page.text == PAGE
        assert page.content_type == "text/html"
        assert page.is_success
        assert seen["user_agent"] == "TestAgent/1.0"

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://example.com/new"})
            return httpx.Response(200, text=PAGE, headers={"content-type": "text/html"})

        async with make_client(handler) as client:
            page = await client.fetch_document("https://example.com/old")

        assert page.final_url == "https://example.com/new"
        assert page.redirect_history == ["https://example.com/old"]

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request):
            return httpx.Response(404, text="missing", headers={"content-type": "text/html"})

        async with make_client(handler) as client:
            with pytest.raises(DocumentLoadError):
                await client.fetch_document("https://example.com/gone")

    @pytest.mark.asyncio
    async def test_non_html_content(self):
        def handler(request):
            return httpx.Response(200, json={"ok": True})

        async with make_client(handler) as client:
            with pytest.raises(DocumentLoadError):
                await client.fetch_document("https://example.com/api")

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request.url)
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler, max_retries=2) as client:
            with pytest.raises(DocumentLoadError):
                await client.fetch_document("https://example.com/")

        assert len(attempts) == 3
