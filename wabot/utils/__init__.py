"""Shared utilities for the bot."""

from wabot.utils.logging_utils import preview, setup_logging
from wabot.utils.timestamps import format_duration, now_iso, to_iso, utc_now

__all__ = [
    "now_iso",
    "utc_now",
    "to_iso",
    "format_duration",
    "setup_logging",
    "preview",
]
