"""
Tools Package - HTML fetching, selector discovery and result extraction

This package contains the page-level building blocks used by the services.
"""

from .fetcher import PageFetcher, FetchedPage
from .selector_discovery import SelectorDiscovery, parse_page
from .result_extractor import ResultExtractor
from .ranking import ranking_score

__all__ = [
    'PageFetcher',
    'FetchedPage',
    'SelectorDiscovery',
    'parse_page',
    'ResultExtractor',
    'ranking_score',
]
