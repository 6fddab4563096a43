"""
Logging Service

Centralized logging setup for the API process and the catalog CLI.
Scraped page text ends up in log lines (card titles, site errors), so
messages built from it go through sanitize_message() first.

Usage:
    from spyglass.services.logging_service import configure_logging
    from spyglass.core.config import settings

    configure_logging(settings.log_level)
"""

import logging
import re
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s - %(message)s"

# Third-party loggers that are noisy at INFO level
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3")


def configure_logging(level: Union[str, int] = "INFO", fmt: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name or number (e.g. "INFO", logging.DEBUG)
        fmt: Optional log format, defaults to LOG_FORMAT
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=fmt or LOG_FORMAT, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug(f"Logging configured at {logging.getLevelName(level)}")


def sanitize_message(message: str, max_length: int = 500) -> str:
    """
    Sanitize scraped text before writing it to the log.

    Removes:
    - Null bytes
    - Control characters (except newlines and tabs)
    - Excessive whitespace

    Limits:
    - Maximum length

    Args:
        message: Message to sanitize
        max_length: Maximum message length

    Returns:
        Sanitized message
    """
    message = message.replace('\x00', '')

    message = ''.join(
        char for char in message
        if char in ('\n', '\t') or (ord(char) >= 32 and ord(char) != 127)
    )

    message = re.sub(r'\s+', ' ', message).strip()

    if len(message) > max_length:
        message = message[:max_length] + "...[truncated]"

    return message
