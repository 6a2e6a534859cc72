"""
Logging configuration for vinotes.

Call configure_logging() once at startup; library code only imports
`from loguru import logger`.
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def mask_token(token: Optional[str]) -> str:
    """Render an access token safely for log output."""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "***"
    return f"***{token[-4:]}"


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True
) -> None:
    """
    Configure the loguru sinks.

    Args:
        level: Minimum level for every sink
        log_file: Optional file sink, rotated at 10 MB and kept for a week
        console: Whether to also log to stderr
    """
    logger.remove()

    if log_file:
        logger.add(
            sink=str(log_file),
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="7 days",
            encoding="utf-8",
        )

    if console:
        logger.add(sink=sys.stderr, level=level, colorize=True)

    logger.debug(f"Logging configured: level={level}, file={log_file}, console={console}")
