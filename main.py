# main.py
"""
FastAPI Application Entry Point

Clean and minimal main.py that imports routes from api/routes.py
All route logic is separated into the api module for better organization.

Run:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from typing import Optional

from fastapi import FastAPI
from api.routes import router
from api.middleware import setup_middleware
from spyglass.core.backend import SearchBackend
from spyglass.core.config import settings
from spyglass.services.logging_service import configure_logging

logger = logging.getLogger(__name__)


def create_app(backend: Optional[SearchBackend] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        backend: Pre-built services (tests inject one); built on startup if None
    """
    app = FastAPI(
        title="Spyglass Search API",
        description="Meta-search across a catalog of sites with streamed, ranked results",
        version="1.0.0"
    )

    setup_middleware(app, allowed_origins=settings.allowed_origins)

    app.include_router(router)

    @app.on_event("startup")
    async def startup_event():
        if backend is not None:
            app.state.backend = backend
        else:
            app.state.backend = SearchBackend.from_settings(settings)
        logger.info("[STARTUP] Search backend attached")

    # Cancel running searches and close connections
    @app.on_event("shutdown")
    async def shutdown_event():
        current = getattr(app.state, "backend", None)
        if current is not None:
            await current.aclose()
        logger.info("[SHUTDOWN] Cleanup complete")

    return app


configure_logging(settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
