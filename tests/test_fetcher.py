"""Fetcher request/response handling tests (no real network)."""

from __future__ import annotations

import httpx
import pytest
from safe_fetch.config import LimitsConfig
from safe_fetch.errors import SafeError
from safe_fetch.fetcher import USER_AGENT, Fetcher, validate_url


def _fetcher(handler) -> Fetcher:
    return Fetcher(limits=LimitsConfig(), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_returns_text_and_content_type() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["user-agent"]
        return httpx.Response(
            200,
            content=b"<html><body><p>hi</p></body></html>",
            headers={"content-type": "text/html; charset=utf-8"},
        )

    result = await _fetcher(handler).fetch("https://example.com/page")
    assert result.text == "<html><body><p>hi</p></body></html>"
    assert result.status == 200
    assert result.content_type == "text/html; charset=utf-8"
    assert result.url == "https://example.com/page"
    assert seen["ua"] == USER_AGENT


@pytest.mark.asyncio
async def test_fetch_follows_redirects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"location": "https://example.com/new"})
        return httpx.Response(200, content=b"moved", headers={"content-type": "text/plain"})

    result = await _fetcher(handler).fetch("https://example.com/old")
    assert result.text == "moved"
    assert result.url == "https://example.com/new"


@pytest.mark.asyncio
async def test_fetch_http_error_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with pytest.raises(SafeError) as exc_info:
        await _fetcher(handler).fetch("https://example.com/missing")
    assert exc_info.value.code == "Fetch"
    assert exc_info.value.message == "HTTP 404: Not Found"
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_fetch_network_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SafeError) as exc_info:
        await _fetcher(handler).fetch("https://example.com/")
    assert exc_info.value.code == "Network"


@pytest.mark.asyncio
async def test_fetch_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SafeError) as exc_info:
        await _fetcher(handler).fetch("https://example.com/")
    assert exc_info.value.code == "Timeout"


@pytest.mark.parametrize("url", ["ftp://example.com/x", "example.com", "/relative/path", "https://"])
def test_validate_url_rejects_non_http(url: str) -> None:
    with pytest.raises(SafeError) as exc_info:
        validate_url(url)
    assert exc_info.value.code == "UserInput"


def test_validate_url_trims_whitespace() -> None:
    assert validate_url("  https://example.com/a  ") == "https://example.com/a"
