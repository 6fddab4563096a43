"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including test settings, sample
catalog entries, sample HTML pages and mocked HTTP transports.
"""

import os
from typing import Callable, Dict, Union

import httpx
import pytest

# Set test environment variables before importing app modules
os.environ["DATABASE_PATH"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from spyglass.core.config import Settings
from spyglass.models.link import Link, SearchLink
from spyglass.models.result import Result
from spyglass.tools.fetcher import PageFetcher


# ============================================================================
# SAMPLE PAGES
# ============================================================================

NO_RESULTS_HTML = "<ul><li>No results</li></ul>"

RESULTS_HTML = (
    '<ul>'
    '<li class="card"><a href="/x">Foo</a></li>'
    '<li class="card"><a href="/y">Foo Bar</a></li>'
    '</ul>'
)

EMPTY_PAGE_HTML = "<p>Nothing here</p>"


def html_response(html: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=html, headers={"Content-Type": "text/html"})


def make_client(
    pages: Dict[str, Union[str, int, Callable[[httpx.Request], httpx.Response]]],
    default: Union[str, int] = 404
) -> httpx.AsyncClient:
    """
    AsyncClient backed by a MockTransport.

    pages maps "host?q=query" (or just "host") to HTML, a status code, or a handler.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q")
        keys = [f"{request.url.host}?q={query}", request.url.host]
        for key in keys:
            if key in pages:
                page = pages[key]
                break
        else:
            page = default

        if callable(page):
            return page(request)
        if isinstance(page, int):
            return httpx.Response(page, text="")
        return html_response(page)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def test_settings():
    """Provide test configuration settings (in-memory storage, no retries)."""
    return Settings(
        database_path="",
        max_parallelism=4,
        catalog_parallelism=4,
        search_timeout_seconds=5.0,
        stream_grace_period_seconds=300.0,
        fetch_timeout_seconds=5.0,
        fetch_retries=0,
        rate_limit="1000/minute",
    )


@pytest.fixture
def sample_search_link():
    """Provide a sample search link."""
    return SearchLink(
        title="Example Books",
        url="https://books.example.com",
        category="Books",
        searchUrl="https://books.example.com/search?q={query}",
    )


@pytest.fixture
def sample_link():
    """Provide a sample cataloged link with a discovered selector."""
    return Link(
        title="Example Books",
        url="https://books.example.com",
        category="Books",
        starred=True,
        search_url="https://books.example.com/search?q={query}",
        card_selector="ul > li.card",
        response_time=120.0,
    )


@pytest.fixture
def make_link():
    """Factory for cataloged links on distinct hosts."""
    def _make(host: str, card_selector: str = "ul > li.card", response_time=None, category: str = "Books") -> Link:
        return Link(
            title=host.split(".")[0].title(),
            url=f"https://{host}",
            category=category,
            search_url=f"https://{host}/search?q={{query}}",
            card_selector=card_selector,
            response_time=response_time,
        )
    return _make


@pytest.fixture
def make_result():
    """Factory for results with a given title and score."""
    def _make(title: str, score: int = 50) -> Result:
        return Result(
            title=title,
            result_url=f"https://books.example.com/{title.lower().replace(' ', '-')}",
            category="Books",
            website_title="Example Books",
            website_url="https://books.example.com",
            score=score,
        )
    return _make


@pytest.fixture
def mock_fetcher_factory():
    """Build a PageFetcher over a MockTransport."""
    def _make(pages, default=404) -> PageFetcher:
        return PageFetcher(client=make_client(pages, default), timeout=5.0, retries=0)
    return _make
