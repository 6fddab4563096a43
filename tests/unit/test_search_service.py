"""
Unit Tests for Search Service

Tests concurrent fan-out: result merging, per-site failure isolation,
the parallelism ceiling and cancellation on early close.
"""

import asyncio

import httpx
import pytest

from conftest import RESULTS_HTML, html_response

from spyglass.services.search_service import SearchService
from spyglass.tools.fetcher import PageFetcher
from spyglass.tools.result_extractor import ResultExtractor


async def collect(results):
    return [r async for r in results]


class TestSearchService:
    """Tests for SearchService.search()."""

    def test_rejects_zero_parallelism(self, mock_fetcher_factory):
        with pytest.raises(ValueError):
            SearchService(mock_fetcher_factory({}), ResultExtractor(), max_parallelism=0)

    @pytest.mark.asyncio
    async def test_merges_results_from_all_sites(self, mock_fetcher_factory, make_link):
        fetcher = mock_fetcher_factory({
            "one.example.com": RESULTS_HTML,
            "two.example.com": RESULTS_HTML,
        })
        service = SearchService(fetcher, ResultExtractor(), max_parallelism=4)
        links = [make_link("one.example.com"), make_link("two.example.com")]

        results = await collect(service.search("foo bar", links))

        assert len(results) == 4
        assert {r.website_url for r in results} == {"https://one.example.com", "https://two.example.com"}
        assert {r.title for r in results} == {"Foo", "Foo Bar"}

    @pytest.mark.asyncio
    async def test_failing_sites_contribute_nothing(self, mock_fetcher_factory, make_link):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = mock_fetcher_factory({
            "good.example.com": RESULTS_HTML,
            "error.example.com": 500,
            "down.example.com": refuse,
            "broken.example.com": RESULTS_HTML,
        })
        service = SearchService(fetcher, ResultExtractor(), max_parallelism=4)
        links = [
            make_link("good.example.com"),
            make_link("error.example.com"),
            make_link("down.example.com"),
            make_link("broken.example.com", card_selector="li["),
        ]

        results = await collect(service.search("foo bar", links))

        assert len(results) == 2
        assert all(r.website_url == "https://good.example.com" for r in results)

    @pytest.mark.asyncio
    async def test_query_is_normalised_into_search_url(self, mock_fetcher_factory, make_link):
        seen = []

        def record(request):
            seen.append(request.url.params.get("q"))
            return html_response(RESULTS_HTML)

        service = SearchService(mock_fetcher_factory({"one.example.com": record}), ResultExtractor())
        await collect(service.search("  Foo,  BAR! ", [make_link("one.example.com")]))

        assert seen == ["foo bar"]

    @pytest.mark.asyncio
    async def test_empty_query_or_catalog(self, mock_fetcher_factory, make_link):
        service = SearchService(mock_fetcher_factory({"one.example.com": RESULTS_HTML}), ResultExtractor())

        assert await collect(service.search("  !! ", [make_link("one.example.com")])) == []
        assert await collect(service.search("foo", [])) == []

    @pytest.mark.asyncio
    async def test_parallelism_ceiling(self, make_link):
        active = 0
        peak = 0

        async def slow(request):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return html_response(RESULTS_HTML)

        client = httpx.AsyncClient(transport=httpx.MockTransport(slow))
        service = SearchService(PageFetcher(client=client), ResultExtractor(), max_parallelism=2)
        links = [make_link(f"site{i}.example.com") for i in range(6)]

        results = await collect(service.search("foo", links))

        assert len(results) == 12
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight_sites(self, make_link):
        cancelled = asyncio.Event()

        async def handler(request):
            if request.url.host == "slow.example.com":
                try:
                    await asyncio.sleep(30)
                except asyncio.CancelledError:
                    cancelled.set()
                    raise
            return html_response(RESULTS_HTML)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = SearchService(PageFetcher(client=client), ResultExtractor(), max_parallelism=4)
        links = [make_link("fast.example.com"), make_link("slow.example.com")]

        stream = service.search("foo", links)
        first = await asyncio.wait_for(stream.__anext__(), timeout=5)
        await asyncio.wait_for(stream.aclose(), timeout=5)

        assert first.website_url == "https://fast.example.com"
        assert cancelled.is_set()
