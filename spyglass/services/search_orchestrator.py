"""
Search Orchestrator - Query coalescing and result replay

One background search per distinct query string, however many clients
ask for it at the same time:

    NotStarted --get_or_start()--> Running --search done/timeout--> Completed

- A stored (unexpired) result set is replayed without searching.
- Otherwise the first caller starts a background run; later callers join it.
- Every caller first receives the results buffered so far, then the live
  ones, with no duplicates and no gaps.
- On completion the buffer is sorted by score and persisted. The in-memory
  stream stays available for a grace period, then is evicted.
- A caller going away only detaches that caller.

Usage:
    orchestrator = SearchOrchestrator(search_service, link_store, result_store)
    async for result in orchestrator.get_or_start("war and peace"):
        ...
"""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Dict, List, Optional, Tuple

from spyglass.models.link import Link
from spyglass.models.result import Result, StoredResultSet
from spyglass.services.link_store import LinkStore
from spyglass.services.result_store import ResultStore
from spyglass.services.search_service import SearchService

logger = logging.getLogger(__name__)

# Marks the end of a subscriber queue
_END = object()


class SearchStream:
    """
    Runtime state of one query.

    Written only by its background run; read by any number of subscribers.
    All mutation happens on the event loop without suspension points, so
    attach() sees a consistent buffer.
    """

    def __init__(self, query: str):
        self.query = query
        self.buffer: List[Result] = []
        self.completed = False
        self.task: Optional[asyncio.Task] = None
        self._subscribers: List[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, result: Result) -> None:
        """Append to the buffer and forward to every attached subscriber."""
        self.buffer.append(result)
        for queue in self._subscribers:
            queue.put_nowait(result)

    def complete(self) -> None:
        """Sort the buffer by descending score and end every subscriber stream."""
        if self.completed:
            return
        self.buffer.sort(key=lambda r: r.score, reverse=True)
        self.completed = True
        for queue in self._subscribers:
            queue.put_nowait(_END)

    def attach(self) -> Tuple[List[Result], Optional[asyncio.Queue]]:
        """
        Snapshot the buffer and register for everything published after it.

        Returns:
            (snapshot, queue); queue is None when the stream has completed
        """
        snapshot = list(self.buffer)
        if self.completed:
            return snapshot, None
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return snapshot, queue

    def detach(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)


class SearchOrchestrator:
    """Coalesces identical concurrent queries behind one search run."""

    def __init__(
        self,
        search_service: SearchService,
        link_store: LinkStore,
        result_store: ResultStore,
        search_timeout: float = 30.0,
        grace_period: float = 300.0
    ):
        """
        Args:
            search_service: Executes the fan-out across the catalog
            link_store: Source of the catalog for each run
            result_store: Durable cache of completed result sets
            search_timeout: Wall-clock limit of one background run, in seconds
            grace_period: Seconds a completed stream stays in memory
        """
        self.search_service = search_service
        self.link_store = link_store
        self.result_store = result_store
        self.search_timeout = search_timeout
        self.grace_period = grace_period

        self._active: Dict[str, SearchStream] = {}
        self._evictions: Dict[str, asyncio.TimerHandle] = {}

    def active_queries(self) -> List[str]:
        """Queries currently held in memory (running or in their grace period)."""
        return list(self._active.keys())

    def get_stream(self, query: str) -> Optional[SearchStream]:
        return self._active.get(query)

    async def get_or_start(self, query: str) -> AsyncIterator[Result]:
        """
        Stream results for a query, starting a search only when needed.

        Args:
            query: Exact query string (cache and coalescing key)
        """
        stream = self._active.get(query)

        if stream is None:
            stored = await self.result_store.get(query)
            if stored is not None:
                logger.info(f"[ORCHESTRATOR] Serving {len(stored.results)} stored results for query: {query}")
                for result in stored.results:
                    yield result
                return

            stream = self._get_or_create(query)

        snapshot, queue = stream.attach()
        try:
            for result in snapshot:
                yield result

            if queue is None:
                return

            while True:
                item = await queue.get()
                if item is _END:
                    break
                yield item
        finally:
            if queue is not None:
                stream.detach(queue)

    def _get_or_create(self, query: str) -> SearchStream:
        # No await between lookup and insert: at most one run per query
        stream = self._active.get(query)
        if stream is None:
            stream = SearchStream(query)
            self._active[query] = stream
            stream.task = asyncio.create_task(self._run(query, stream))
            logger.info(f"[ORCHESTRATOR] Starting new search stream for query: {query}")
        return stream

    async def _run(self, query: str, stream: SearchStream) -> None:
        try:
            try:
                links = await self.link_store.get_all()
                await asyncio.wait_for(self._drain(query, links, stream), timeout=self.search_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"[ORCHESTRATOR] Search timed out after {self.search_timeout}s for query: {query} "
                    f"({len(stream.buffer)} results collected)"
                )
            except Exception as e:
                logger.error(f"[ORCHESTRATOR] Error during search for query: {query}: {e}", exc_info=True)

            await self._persist(query, stream)
        finally:
            stream.complete()
            self._schedule_eviction(query, stream)

    async def _drain(self, query: str, links: List[Link], stream: SearchStream) -> None:
        async with aclosing(self.search_service.search(query, links)) as results:
            async for result in results:
                stream.publish(result)

    async def _persist(self, query: str, stream: SearchStream) -> None:
        if not stream.buffer:
            logger.info(f"[ORCHESTRATOR] No results to store for query: {query}")
            return

        ordered = sorted(stream.buffer, key=lambda r: r.score, reverse=True)
        try:
            await self.result_store.put(StoredResultSet(query=query, results=ordered))
            logger.info(f"[ORCHESTRATOR] Stored {len(ordered)} results for query: {query}")
        except Exception as e:
            logger.error(f"[ORCHESTRATOR] Failed to store results for query: {query}: {e}", exc_info=True)

    def _schedule_eviction(self, query: str, stream: SearchStream) -> None:
        if self.grace_period <= 0:
            self._evict(query, stream)
            return
        loop = asyncio.get_running_loop()
        self._evictions[query] = loop.call_later(self.grace_period, self._evict, query, stream)

    def _evict(self, query: str, stream: SearchStream) -> None:
        self._evictions.pop(query, None)
        if self._active.get(query) is stream:
            del self._active[query]
            logger.info(f"[ORCHESTRATOR] Cleaned up completed search stream for query: {query}")

    async def shutdown(self) -> None:
        """Cancel running searches and pending evictions."""
        tasks = [s.task for s in self._active.values() if s.task is not None and not s.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        # Runs cancelled before they started never reach their own completion
        for stream in self._active.values():
            stream.complete()

        for handle in self._evictions.values():
            handle.cancel()
        self._evictions.clear()
        self._active.clear()
        logger.info("[ORCHESTRATOR] Shut down")
