"""Tests for timestamp and logging helpers (wabot.utils)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from wabot.utils.logging_utils import LOG_FORMAT, preview, setup_logging
from wabot.utils.timestamps import format_duration, now_iso, to_iso


class TestToIso:
    def test_utc_datetime(self) -> None:
        dt = datetime(2026, 2, 4, 14, 30, 22, 123456, tzinfo=UTC)
        assert to_iso(dt) == "2026-02-04T14:30:22.123Z"

    def test_naive_treated_as_utc(self) -> None:
        assert to_iso(datetime(2026, 2, 4, 14, 30, 22)) == "2026-02-04T14:30:22.000Z"

    def test_converts_other_timezones(self) -> None:
        dt = datetime(2026, 2, 4, 16, 30, 22, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso(dt) == "2026-02-04T14:30:22.000Z"

    def test_none_passes_through(self) -> None:
        assert to_iso(None) is None

    def test_now_iso_round_trips(self) -> None:
        parsed = datetime.fromisoformat(now_iso())
        assert abs((datetime.now(UTC) - parsed).total_seconds()) < 5


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0s"),
            (42.9, "42s"),
            (60, "1m 0s"),
            (3725, "1h 2m 5s"),
            (90061, "1d 1h 1m 1s"),
            (-5, "0s"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestPreview:
    def test_flattens_newlines(self) -> None:
        assert preview("hello\nworld\n") == "hello world"

    def test_truncates(self) -> None:
        assert preview("a" * 150) == "a" * 100

    def test_empty(self) -> None:
        assert preview(None) == ""
        assert preview("") == ""


class TestSetupLogging:
    def test_sets_root_level(self) -> None:
        with patch("wabot.utils.logging_utils.logging.basicConfig") as basic_config:
            setup_logging("debug")

        basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT, force=True)
        assert logging.getLogger("aiohttp.access").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        with patch("wabot.utils.logging_utils.logging.basicConfig") as basic_config:
            setup_logging("chatty")

        assert basic_config.call_args.kwargs["level"] == logging.INFO
