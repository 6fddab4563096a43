"""
Search Backend - Service wiring

Builds the long-lived services from Settings and owns their lifetimes:
one shared HTTP client, the stores, the search executor, the query
orchestrator and the catalog builder.

Usage:
    from spyglass.core.backend import SearchBackend

    backend = SearchBackend.from_settings()
    async for result in backend.orchestrator.get_or_start("war and peace"):
        ...
    await backend.aclose()
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from spyglass.core.config import Settings, settings as default_settings
from spyglass.services.catalog_builder import CatalogBuilder
from spyglass.services.link_store import LinkStore
from spyglass.services.result_store import ResultStore, create_result_store
from spyglass.services.search_orchestrator import SearchOrchestrator
from spyglass.services.search_service import SearchService
from spyglass.tools.fetcher import PageFetcher
from spyglass.tools.result_extractor import ResultExtractor
from spyglass.tools.selector_discovery import SelectorDiscovery

logger = logging.getLogger(__name__)


@dataclass
class SearchBackend:
    """Every service the API needs, built once per process."""
    fetcher: PageFetcher
    link_store: LinkStore
    result_store: ResultStore
    search_service: SearchService
    orchestrator: SearchOrchestrator
    catalog_builder: CatalogBuilder

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None
    ) -> "SearchBackend":
        """
        Args:
            config: Settings to build from (module settings if None)
            client: Optional pre-built HTTP client shared by all fetches
        """
        config = config or default_settings

        fetcher = PageFetcher(
            client=client,
            timeout=config.fetch_timeout_seconds,
            retries=config.fetch_retries,
        )
        link_store = LinkStore(config.database_path)
        result_store = create_result_store(config.database_path, config.result_retention_minutes)

        extractor = ResultExtractor(
            skip_keywords=config.skip_keywords,
            min_score=config.min_result_score,
        )
        search_service = SearchService(fetcher, extractor, max_parallelism=config.max_parallelism)
        orchestrator = SearchOrchestrator(
            search_service,
            link_store,
            result_store,
            search_timeout=config.search_timeout_seconds,
            grace_period=config.stream_grace_period_seconds,
        )
        catalog_builder = CatalogBuilder(
            fetcher,
            SelectorDiscovery(),
            parallelism=config.catalog_parallelism,
            invalid_query=config.invalid_query,
            valid_queries=config.valid_queries,
            alternate_queries=config.alternate_queries,
        )

        logger.info(f"Search backend ready (database: {config.database_path or 'in-memory'})")
        return cls(
            fetcher=fetcher,
            link_store=link_store,
            result_store=result_store,
            search_service=search_service,
            orchestrator=orchestrator,
            catalog_builder=catalog_builder,
        )

    async def aclose(self) -> None:
        """Stop running searches and release connections."""
        await self.orchestrator.shutdown()
        await self.fetcher.aclose()
        self.link_store.close()
        close = getattr(self.result_store, "close", None)
        if close is not None:
            close()
        logger.info("Search backend closed")
