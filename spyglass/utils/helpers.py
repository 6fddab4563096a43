"""
Helper Utilities - Thin wrappers around open-source libraries

This module provides convenient wrappers around third-party libraries
for URL validation and retry logic, plus the small text and URL
normalisation routines shared by discovery and extraction.
"""

from typing import Callable, List, Optional, Tuple, Type
from urllib.parse import urljoin, urlsplit, unquote
import re
import validators
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

# ============================================================================
# Validation Helpers (using 'validators' library)
# ============================================================================

def validate_url(url: str, require_https: bool = False) -> bool:
    """
    Validate if string is a valid URL.

    Args:
        url: URL to validate
        require_https: If True, only HTTPS URLs are valid

    Returns:
        bool: True if valid URL
    """
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        return False

    if not validators.url(url):
        return False

    if require_https and not url.startswith('https://'):
        return False

    return True


# ============================================================================
# Retry Decorator (using 'tenacity' library)
# ============================================================================

def retry_on_failure(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,)
) -> Callable:
    """
    Decorator to retry function on failure with exponential backoff.

    Works on both plain functions and coroutines.

    Args:
        max_attempts: Maximum retry attempts
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds
        exceptions: Exception types that trigger a retry

    Returns:
        Decorated function

    Example:
        @retry_on_failure(max_attempts=3, exceptions=(httpx.HTTPError,))
        async def fetch_page():
            return await client.get(url)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        reraise=True
    )


# ============================================================================
# URL Helpers
# ============================================================================

def to_absolute_url(base_url: str, url: Optional[str]) -> Optional[str]:
    """
    Resolve a possibly relative URL against a base URL.

    Args:
        base_url: Absolute base URL of the site
        url: href/src value from the page

    Returns:
        Absolute http(s) URL, or None if either input is blank or the
        combination cannot be resolved
    """
    if not base_url or not base_url.strip() or not url or not url.strip():
        return None

    try:
        base = urlsplit(base_url.strip())
        if base.scheme not in ("http", "https") or not base.netloc:
            return None

        absolute = urljoin(base_url.strip(), url.strip())
        parts = urlsplit(absolute)
        # Accessing .port validates it and raises ValueError when malformed
        parts.port
    except ValueError:
        return None

    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None

    return absolute


def path_segments(url: str) -> List[str]:
    """Non-empty path segments of an absolute URL, percent-decoded."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return []
    return [unquote(segment) for segment in path.split("/") if segment]


def extract_url_slug(url: str) -> str:
    """
    Last path segment of a URL with word separators turned into spaces.

    Example: "https://x.com/games/batman-arkham_knight" -> "batman arkham knight"
    """
    segments = path_segments(url)
    if not segments:
        return ""
    return segments[-1].replace('-', ' ').replace('_', ' ')


# ============================================================================
# Text Helpers
# ============================================================================

_PUNCTUATION_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")


def normalise_string(text: Optional[str]) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if not text or not text.strip():
        return ""
    lowered = text.lower()
    no_punctuation = _PUNCTUATION_RE.sub("", lowered)
    return _WHITESPACE_RE.sub(" ", no_punctuation).strip()


def clean_title(title: Optional[str]) -> str:
    """
    Collapse whitespace and title-case each word.

    Words that already contain an uppercase letter are left alone so
    acronyms (GTA) and mixed case (McLovin) survive.
    """
    if not title or not title.strip():
        return ""

    words = _WHITESPACE_RE.sub(" ", title).strip().split(" ")
    cleaned = []
    for word in words:
        if any(char.isupper() for char in word):
            cleaned.append(word)
        elif len(word) > 1:
            cleaned.append(word[0].upper() + word[1:].lower())
        else:
            cleaned.append(word.upper())
    return " ".join(cleaned)


def extract_year(text: Optional[str]) -> Optional[int]:
    """First four-digit year (19xx or 20xx) found in the text."""
    if not text:
        return None
    match = _YEAR_RE.search(text)
    return int(match.group(0)) if match else None
