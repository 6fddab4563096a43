"""
Configuration Management

Centralized configuration using Pydantic Settings.
All environment variables are validated and type-checked.

Usage:
    from spyglass.core.config import settings

    parallelism = settings.max_parallelism
    timeout = settings.search_timeout_seconds
"""

from pydantic_settings import BaseSettings
from typing import Dict, List
import os


def get_database_path() -> str:
    """
    Pick the SQLite database location for the current environment.

    Detection logic:
    1. If DATABASE_PATH env var is set, use it (manual override)
    2. If running in Docker (/.dockerenv exists), use the mounted /data volume
    3. Otherwise, use a local data/ directory

    Returns:
        str: Path to the SQLite database file
    """
    database_path = os.getenv('DATABASE_PATH')
    if database_path:
        return database_path

    if os.path.exists('/.dockerenv'):
        return "/data/spyglass.db"

    return "data/spyglass.db"


# Path segments that mark category/listing links rather than result links
DEFAULT_SKIP_KEYWORDS = [
    "category", "categories", "genre", "genres", "tag", "tags",
    "author", "authors", "page", "search", "browse", "sort",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    allowed_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    # Storage Settings
    database_path: str = get_database_path()
    result_retention_minutes: int = 60 * 24

    # Search Settings
    max_parallelism: int = 32
    search_timeout_seconds: float = 30.0
    stream_grace_period_seconds: float = 300.0
    fetch_timeout_seconds: float = 15.0
    min_result_score: int = 0
    skip_keywords: List[str] = DEFAULT_SKIP_KEYWORDS

    # Selector Discovery Settings
    catalog_parallelism: int = 8
    fetch_retries: int = 2
    invalid_query: str = "asdfghjklqwerty12345"
    valid_queries: Dict[str, List[str]] = {
        "Books": ["the", "of"],
        "Movies": ["love", "man"],
        "Games Download": ["war", "world"],
    }
    alternate_queries: Dict[str, List[str]] = {
        "Books": ["murder", "history"],
        "Movies": ["night", "story"],
    }

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars


# Global settings instance
settings = Settings()
