from __future__ import annotations

from datetime import datetime

import pytest

from friendcircle.services.timeparse import (
    format_timestamp,
    now_string,
    parse_feed_time,
    parse_timestamp,
)

from support import FIXED_NOW_STRING, fixed_clock


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Mon, 02 Jan 2006 15:04:05 +0800", "2006-01-02 15:04:05"),
        ("Mon, 02 Jan 2006 07:04:05 GMT", "2006-01-02 07:04:05"),
        ("2006-01-02T15:04:05+08:00", "2006-01-02 15:04:05"),
        ("2006-01-02T15:04:05Z", "2006-01-02 15:04:05"),
        ("2006-01-02T15:04:05.123+0800", "2006-01-02 15:04:05"),
        ("2006-01-02 15:04:05", "2006-01-02 15:04:05"),
        ("  2006-01-02 15:04:05\n", "2006-01-02 15:04:05"),
    ],
)
def test_parse_feed_time_known_formats(raw: str, expected: str) -> None:
    assert parse_feed_time(raw) == expected


def test_parse_feed_time_keeps_declared_offset() -> None:
    # wall time is not converted to UTC+8
    assert parse_feed_time("Mon, 02 Jan 2006 15:04:05 -0700") == "2006-01-02 15:04:05"


@pytest.mark.parametrize("raw", ["", "yesterday", "2006/01/02", "02 Jan"])
def test_parse_feed_time_returns_empty_when_unparseable(raw: str) -> None:
    assert parse_feed_time(raw) == ""


def test_now_string_uses_injected_clock() -> None:
    assert now_string(fixed_clock) == FIXED_NOW_STRING


def test_parse_timestamp_round_trips_normalized_strings() -> None:
    value = datetime(2024, 2, 29, 23, 59, 58)

    assert parse_timestamp(format_timestamp(value)) == value
    assert parse_timestamp("2024/1/5") is None
