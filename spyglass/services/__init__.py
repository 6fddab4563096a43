"""
Services Package - Business logic services

This package contains the stores, the search executor, the query
orchestrator and the catalog builder.
"""

# Import services
from .logging_service import configure_logging, sanitize_message
from .link_store import LinkStore
from .result_store import ResultStore, InMemoryResultStore, SqliteResultStore, create_result_store
from .search_service import SearchService
from .search_orchestrator import SearchOrchestrator, SearchStream
from .catalog_builder import CatalogBuilder, load_search_links_json, save_links_json

__all__ = [
    'configure_logging',
    'sanitize_message',
    'LinkStore',
    'ResultStore',
    'InMemoryResultStore',
    'SqliteResultStore',
    'create_result_store',
    'SearchService',
    'SearchOrchestrator',
    'SearchStream',
    'CatalogBuilder',
    'load_search_links_json',
    'save_links_json',
]
