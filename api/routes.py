"""
API Routes

Search streaming, catalog management and result-cache endpoints.

Usage:
    from fastapi import FastAPI
    from api.routes import router

    app = FastAPI()
    app.include_router(router)
"""

import logging
from contextlib import aclosing
from pathlib import Path
from typing import AsyncIterator

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from api.middleware import limiter
from spyglass.core.backend import SearchBackend
from spyglass.core.config import settings
from spyglass.models.message import RebuildCatalogRequest, RebuildCatalogResponse, SearchRequest
from spyglass.models.result import Result
from spyglass.services.catalog_builder import load_search_links_json

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"

# Create router for all search routes
router = APIRouter(
    prefix="",
    tags=["search"]
)


def get_backend(request: Request) -> SearchBackend:
    return request.app.state.backend


async def ndjson_lines(results: AsyncIterator[Result]) -> AsyncIterator[str]:
    """One camelCase JSON object per line. Closing this closes the result stream."""
    async with aclosing(results) as stream:
        async for result in stream:
            yield result.model_dump_json(by_alias=True) + "\n"


async def run_catalog_rebuild(backend: SearchBackend, path: str) -> None:
    """Background task: rediscover selectors for every search link in the file."""
    try:
        search_links = load_search_links_json(path)
        report = await backend.catalog_builder.rebuild(search_links, backend.link_store)
        logger.info(
            f"[API] Catalog rebuild from {path} finished: "
            f"{report.success_count} links, {report.failure_count} failures"
        )
    except Exception as e:
        logger.error(f"[API] Catalog rebuild from {path} failed: {e}", exc_info=True)


@router.get("/")
def read_root():
    """
    Root endpoint.

    Returns:
        dict: Status message
    """
    return {"status": "Spyglass search backend is running."}


@router.get("/health")
def health_check():
    """
    Health check endpoint for Docker and monitoring.

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "service": "spyglass-backend",
        "version": "1.0.0"
    }


@router.get("/api/search")
@limiter.limit(settings.rate_limit)
async def search(request: Request, query: str = Query(..., min_length=1, max_length=200)):
    """
    Stream results for a query as NDJSON.

    Identical concurrent queries share one search; a stored result set is
    replayed without searching. Disconnecting only stops this response.
    """
    try:
        search_request = SearchRequest(query=query)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0].get("msg", "Invalid query"))

    logger.info(f"[API] Search request: {search_request.query}")
    backend = get_backend(request)
    results = backend.orchestrator.get_or_start(search_request.query)

    return StreamingResponse(ndjson_lines(results), media_type=NDJSON_MEDIA_TYPE)


@router.get("/api/links")
async def list_links(request: Request):
    """
    The site catalog, fastest sites first.

    Returns:
        list: Link objects (camelCase)
    """
    links = await get_backend(request).link_store.get_all()
    return [link.model_dump(by_alias=True) for link in links]


@router.post("/api/links/rebuild", response_model=RebuildCatalogResponse)
async def rebuild_links(body: RebuildCatalogRequest, request: Request, background_tasks: BackgroundTasks):
    """
    Rebuild the catalog from a search links JSON file in the background.

    Args:
        body: RebuildCatalogRequest with the file path
        background_tasks: FastAPI background tasks manager

    Returns:
        RebuildCatalogResponse: Accepted, or an error when the file is missing
    """
    if not Path(body.path).is_file():
        logger.warning(f"[API] Rebuild requested for missing file: {body.path}")
        raise HTTPException(status_code=404, detail=f"Search links file not found: {body.path}")

    background_tasks.add_task(run_catalog_rebuild, get_backend(request), body.path)

    return RebuildCatalogResponse(status="success")


@router.delete("/api/results")
async def clear_results(request: Request):
    """
    Drop every stored result set.

    Returns:
        dict: Number of result sets removed
    """
    removed = await get_backend(request).result_store.remove_all()
    logger.info(f"[API] Cleared {removed} stored result sets")
    return {"status": "success", "removed": removed}
