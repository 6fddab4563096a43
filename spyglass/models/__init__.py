"""
Models Package - Data models and schemas

This package contains Pydantic models for the site catalog, search results,
discovery outcomes and API request/response validation.
"""

from .link import WebsiteLink, SearchLink, Link, SEARCH_QUERY_PLACEHOLDER
from .result import Result, StoredResultSet
from .discovery import DiscoveryResult
from .message import SearchRequest, RebuildCatalogRequest, RebuildCatalogResponse, CatalogBuildReport

__all__ = [
    'WebsiteLink',
    'SearchLink',
    'Link',
    'SEARCH_QUERY_PLACEHOLDER',
    'Result',
    'StoredResultSet',
    'DiscoveryResult',
    'SearchRequest',
    'RebuildCatalogRequest',
    'RebuildCatalogResponse',
    'CatalogBuildReport',
]
