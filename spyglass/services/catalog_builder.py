"""
Catalog Builder - Offline card-selector discovery for the site catalog

For each SearchLink, fetch three pages (one guaranteed-empty search, two
ordinary searches), run selector discovery, and promote the site to a Link
when a card selector is found. Sites that fail are reported and left out.

Usage:
    builder = CatalogBuilder(fetcher, SelectorDiscovery())
    report = await builder.build(load_search_links_json("data/search_links.json"))
    await builder.rebuild(search_links, link_store)
"""

import asyncio
import json
import logging
from pathlib import Path
from statistics import mean
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from spyglass.models.discovery import DiscoveryResult
from spyglass.models.link import Link, SearchLink
from spyglass.models.message import CatalogBuildReport
from spyglass.services.link_store import LinkStore
from spyglass.tools.fetcher import FetchedPage, PageFetcher
from spyglass.tools.selector_discovery import SelectorDiscovery

logger = logging.getLogger(__name__)

# Queries for categories without configured ones
DEFAULT_VALID_QUERIES = ["the", "of"]


class SiteDiscoveryError(Exception):
    """Discovery produced no selector for a site."""
    pass


class CatalogBuilder:
    """Runs selector discovery over many sites with bounded concurrency."""

    def __init__(
        self,
        fetcher: PageFetcher,
        discovery: Optional[SelectorDiscovery] = None,
        parallelism: int = 8,
        invalid_query: str = "asdfghjklqwerty12345",
        valid_queries: Optional[Dict[str, List[str]]] = None,
        alternate_queries: Optional[Dict[str, List[str]]] = None
    ):
        """
        Args:
            fetcher: Shared page fetcher (retries configured on it)
            discovery: Selector discovery engine
            parallelism: Maximum number of sites processed at once
            invalid_query: Query no site can match; yields the baseline page
            valid_queries: Category -> two queries that return results
            alternate_queries: Category -> fallback queries for a second attempt
        """
        self.fetcher = fetcher
        self.discovery = discovery or SelectorDiscovery()
        self.parallelism = max(1, parallelism)
        self.invalid_query = invalid_query
        self.valid_queries = valid_queries or {}
        self.alternate_queries = alternate_queries or {}

    def queries_for(self, category: str) -> List[str]:
        return self.valid_queries.get(category) or DEFAULT_VALID_QUERIES

    async def discover_site(self, search_link: SearchLink, queries: Sequence[str]) -> Link:
        """
        Fetch baseline and result pages for one site and discover its card selector.

        Raises:
            httpx.HTTPError: a page could not be fetched
            SiteDiscoveryError: no selector could be found
        """
        baseline = await self.fetcher.fetch_with_retry(search_link.format_search_url(self.invalid_query))

        result_pages: List[FetchedPage] = []
        for query in queries[:2]:
            result_pages.append(await self.fetcher.fetch_with_retry(search_link.format_search_url(query)))

        outcome: DiscoveryResult = await asyncio.to_thread(
            self.discovery.discover,
            baseline.html,
            [page.html for page in result_pages]
        )
        if not outcome.success:
            raise SiteDiscoveryError(outcome.error or "Discovery failed")

        response_time = mean(page.elapsed_ms for page in [baseline, *result_pages])
        logger.info(
            f"[CATALOG] {search_link.title}: '{outcome.selector}' via {outcome.tier} "
            f"({response_time:.0f}ms)"
        )
        return Link.from_search_link(search_link, outcome.selector, round(response_time, 1))

    async def process_site(self, search_link: SearchLink) -> Link:
        """discover_site() with the category's queries, then its alternate queries."""
        try:
            return await self.discover_site(search_link, self.queries_for(search_link.category))
        except SiteDiscoveryError as e:
            alternates = self.alternate_queries.get(search_link.category)
            if not alternates:
                raise
            logger.info(f"[CATALOG] Retrying {search_link.url} with alternate queries: {e}")
            return await self.discover_site(search_link, alternates)

    async def build(self, search_links: Iterable[SearchLink]) -> CatalogBuildReport:
        """
        Discover card selectors for every site.

        Returns:
            CatalogBuildReport with the promoted links and the failed sites
        """
        search_links = list(search_links)
        semaphore = asyncio.Semaphore(self.parallelism)
        report = CatalogBuildReport()

        async def run(search_link: SearchLink) -> None:
            async with semaphore:
                try:
                    report.links.append(await self.process_site(search_link))
                except SiteDiscoveryError as e:
                    logger.warning(f"[CATALOG] No selector for {search_link.url}: {e}")
                    report.failures[search_link.url] = str(e)
                except httpx.HTTPError as e:
                    logger.warning(f"[CATALOG] Fetch failed for {search_link.url}: {e}")
                    report.failures[search_link.url] = f"Fetch failed: {e}"
                except Exception as e:
                    logger.error(f"[CATALOG] Unexpected error for {search_link.url}: {e}", exc_info=True)
                    report.failures[search_link.url] = str(e)

        logger.info(f"[CATALOG] Discovering selectors for {len(search_links)} sites")
        await asyncio.gather(*(run(link) for link in search_links))

        # Completion order is arbitrary; keep the input order
        order = {link.url: i for i, link in enumerate(search_links)}
        report.links.sort(key=lambda link: order[link.url])

        logger.info(f"[CATALOG] Done: {report.success_count} succeeded, {report.failure_count} failed")
        return report

    async def rebuild(self, search_links: Iterable[SearchLink], link_store: LinkStore) -> CatalogBuildReport:
        """Build, upsert the successes and drop the failed sites from the store."""
        report = await self.build(search_links)
        await link_store.upsert_many(report.links)
        for url in report.failures:
            if await link_store.remove(url):
                logger.info(f"[CATALOG] Removed failing site from catalog: {url}")
        return report


def load_search_links_json(path: str) -> List[SearchLink]:
    """
    Read SearchLink records from a JSON list file.

    Invalid entries are logged and skipped.

    Raises:
        FileNotFoundError: path does not exist
        ValueError: file is not a JSON list
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of search links in {path}")

    links = []
    for i, item in enumerate(data):
        try:
            links.append(SearchLink.model_validate(item))
        except ValueError as e:
            logger.warning(f"[CATALOG] Skipping invalid search link #{i} in {path}: {e}")
    return links


def save_links_json(links: Iterable[Link], path: str) -> int:
    """Write links as a camelCase JSON list. Returns the number written."""
    payload = [link.model_dump(by_alias=True) for link in links]
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(f"[CATALOG] Saved {len(payload)} links to {path}")
    return len(payload)
