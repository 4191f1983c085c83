"""Logging setup shared by the bot entry point and its components.

Every lifecycle transition produces a timestamped log line; this module
owns the one place where the root logger format is decided.
"""

import logging

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("aiohttp.access", "asyncio")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for the process.

    Args:
        level: Level name such as "DEBUG" or "info". Unknown names fall back
            to INFO.

    Examples:
        >>> setup_logging("debug")
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def preview(text: str | None, limit: int = 100) -> str:
    """Shorten message text for a single log line.

    Newlines are flattened so one message never spans several log lines.

    Examples:
        >>> preview("hello\\nworld")
        'hello world'
        >>> preview("a" * 120, limit=5)
        'aaaaa'
        >>> preview(None)
        ''
    """
    if not text:
        return ""
    return " ".join(text.split())[:limit]
