"""
Search Service - Concurrent fan-out across the site catalog

Runs one task per cataloged site under a concurrency ceiling, and merges
every extracted Result onto a single stream in arrival order.

A failing site (network error, timeout, bad HTML, broken selector) is
logged and contributes nothing; it never stops the other sites.

Usage:
    service = SearchService(fetcher, extractor, max_parallelism=32)
    async for result in service.search("war and peace", links):
        ...
"""

import asyncio
import logging
from typing import AsyncIterator, Sequence

import httpx

from spyglass.models.link import Link
from spyglass.models.result import Result
from spyglass.services.logging_service import sanitize_message
from spyglass.tools.fetcher import PageFetcher
from spyglass.tools.result_extractor import ResultExtractor
from spyglass.tools.selector_discovery import parse_page
from spyglass.utils.helpers import normalise_string

logger = logging.getLogger(__name__)

# Marks the end of the shared result queue
_DONE = object()


class SearchService:
    """Bounded-parallel search across every Link for one query."""

    def __init__(self, fetcher: PageFetcher, extractor: ResultExtractor, max_parallelism: int = 32):
        """
        Args:
            fetcher: Shared async page fetcher
            extractor: Result extractor configured with skip keywords
            max_parallelism: Maximum number of sites fetched at once
        """
        if max_parallelism < 1:
            raise ValueError("max_parallelism must be at least 1")
        self.fetcher = fetcher
        self.extractor = extractor
        self.max_parallelism = max_parallelism

    async def search(self, query: str, links: Sequence[Link]) -> AsyncIterator[Result]:
        """
        Stream results from every site as they are produced.

        The stream ends once every site task has finished. Closing the
        generator (or cancelling the task consuming it) cancels in-flight
        and not-yet-started site tasks; results already yielded stay
        delivered.

        Args:
            query: Raw user query; normalised before use
            links: Sites to search, in priority order
        """
        normalised_query = normalise_string(query)
        if not normalised_query or not links:
            return

        queue: asyncio.Queue = asyncio.Queue()
        semaphore = asyncio.Semaphore(self.max_parallelism)

        async def run_site(link: Link) -> None:
            async with semaphore:
                try:
                    await self.search_link(normalised_query, link, queue)
                except asyncio.CancelledError:
                    logger.info(f"[SEARCH] Search of {link.url} was cancelled")
                    raise
                except httpx.HTTPError as e:
                    logger.warning(f"[SEARCH] Fetch failed for {link.url}: {sanitize_message(str(e))}")
                except Exception as e:
                    logger.error(f"[SEARCH] Failed to search {link.url}: {sanitize_message(str(e))}", exc_info=True)

        async def run_all() -> None:
            try:
                await asyncio.gather(*(run_site(link) for link in links))
            finally:
                queue.put_nowait(_DONE)

        logger.info(f"[SEARCH] Searching {len(links)} sites for '{normalised_query}'")
        producer = asyncio.create_task(run_all())

        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    break
                yield item
        finally:
            if not producer.done():
                producer.cancel()
                await asyncio.gather(producer, return_exceptions=True)

    async def search_link(self, normalised_query: str, link: Link, queue: asyncio.Queue) -> int:
        """
        Fetch one site's results page and queue every extracted Result.

        Returns:
            Number of results queued
        """
        url = link.format_search_url(normalised_query)
        page = await self.fetcher.fetch(url)

        # Parsing large pages is CPU bound; keep it off the event loop
        doc = await asyncio.to_thread(parse_page, page.html)

        count = 0
        for result in self.extractor.extract(doc, link.card_selector, normalised_query, link):
            queue.put_nowait(result)
            count += 1

        logger.info(f"[SEARCH] {link.title}: {count} results in {page.elapsed_ms:.0f}ms")
        return count
