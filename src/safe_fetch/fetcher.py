"""HTTP fetcher for the ``safe_fetch`` tool.

Provides:
- http/https only
- finite timeouts
- redirect following
- safe error translation
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from .config import LimitsConfig
from .errors import SafeError

USER_AGENT = "mcp-safe-fetch/0.2"
ACCEPT = "text/html,application/xhtml+xml,*/*"


@dataclass(frozen=True, slots=True)
class FetchResult:
    """A fetched document, decoded to text."""

    text: str
    url: str
    status: int
    content_type: str


def validate_url(url: str) -> str:
    """Return the trimmed URL or raise if it is not an absolute http(s) URL."""
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise SafeError(code="UserInput", message="URL is not valid") from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise SafeError(
            code="UserInput",
            message="URL must be an absolute http(s) URL",
            hint="Example: https://example.com/page",
        )
    return candidate


class Fetcher:
    """Minimal async URL fetcher."""

    def __init__(
        self,
        *,
        limits: LimitsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a fetcher.

        Args:
            limits: Timeout limits.
            transport: Optional httpx transport for tests.
        """
        self._limits = limits
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        target = validate_url(url)
        headers = {"User-Agent": USER_AGENT, "Accept": ACCEPT}

        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(self._limits.fetch_timeout_s),
                transport=self._transport,
            ) as client:
                resp = await client.get(target, headers=headers)
        except httpx.TimeoutException as exc:
            raise SafeError(code="Timeout", message="Request timed out") from exc
        except httpx.HTTPError as exc:
            raise SafeError(code="Network", message="Network request failed", hint=str(exc) or None) from exc

        if resp.status_code >= 400:
            raise SafeError(
                code="Fetch",
                message=f"HTTP {resp.status_code}: {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        return FetchResult(
            text=resp.text,
            url=str(resp.url),
            status=resp.status_code,
            content_type=resp.headers.get("content-type", ""),
        )
