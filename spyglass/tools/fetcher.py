"""
Page Fetcher - Async static HTML fetching

Plain HTTP GET with browser-like headers. No JavaScript rendering: sites
that only render results client-side are out of scope.

Usage:
    from spyglass.tools.fetcher import PageFetcher

    async with PageFetcher(timeout=15.0) as fetcher:
        page = await fetcher.fetch("https://books.example.com/search?q=war")
        print(page.elapsed_ms, len(page.html))
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from spyglass.utils.helpers import retry_on_failure

logger = logging.getLogger(__name__)

# Anti-bot measures
USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:122.0) Gecko/20100101 Firefox/122.0',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15',
]

DEFAULT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'DNT': '1',
    'Upgrade-Insecure-Requests': '1',
}


@dataclass
class FetchedPage:
    """Raw HTML of one fetched page plus how long it took."""
    url: str
    html: str
    status_code: int
    elapsed_ms: float


class PageFetcher:
    """Shared async HTTP client for discovery and search fetches."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        retries: int = 0
    ):
        """
        Args:
            client: Optional pre-built client (tests pass one with a MockTransport)
            timeout: Per-request timeout in seconds
            retries: Extra attempts on transport errors for fetch_with_retry()
        """
        self.timeout = timeout
        self.retries = retries
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=DEFAULT_HEADERS,
            )
        return self._client

    async def fetch(self, url: str) -> FetchedPage:
        """
        GET a page and return its HTML.

        Raises:
            httpx.HTTPError: on transport errors, timeouts and non-2xx responses
        """
        headers = {'User-Agent': random.choice(USER_AGENTS)}

        start = time.perf_counter()
        response = await self.client.get(url, headers=headers)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.raise_for_status()

        logger.debug(f"[FETCH] {url} -> {response.status_code} in {elapsed_ms:.0f}ms")
        return FetchedPage(
            url=str(response.url),
            html=response.text,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
        )

    async def fetch_with_retry(self, url: str) -> FetchedPage:
        """fetch() with exponential backoff on transport errors (connection failures, timeouts)."""
        if self.retries <= 0:
            return await self.fetch(url)

        fetch = retry_on_failure(
            max_attempts=self.retries + 1,
            min_wait=0.5,
            max_wait=4,
            exceptions=(httpx.TransportError,)
        )(self.fetch)
        return await fetch(url)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
