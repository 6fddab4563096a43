"""
Utils Package - Utility functions and helpers

This package contains utility functions for URL handling, text normalisation
and retries.
"""

# Import utilities
from .helpers import (
    validate_url,
    retry_on_failure,
    to_absolute_url,
    extract_url_slug,
    normalise_string,
    clean_title,
    extract_year,
)

__all__ = [
    'validate_url',
    'retry_on_failure',
    'to_absolute_url',
    'extract_url_slug',
    'normalise_string',
    'clean_title',
    'extract_year',
]
