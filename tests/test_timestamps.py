"""Tests for timestamp normalization."""

from datetime import date, datetime, timezone

import pytest

from app.utils.timestamps import to_utc_datetime

EXPECTED = datetime(2026, 3, 10, 12, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [
    EXPECTED,
    datetime(2026, 3, 10, 12, 30),
    "2026-03-10T12:30:00Z",
    "2026-03-10T09:30:00-03:00",
    "2026-03-10 12:30:00",
    EXPECTED.timestamp(),
    int(EXPECTED.timestamp()) * 1000,
    {"seconds": int(EXPECTED.timestamp()), "nanoseconds": 0},
    {"_seconds": int(EXPECTED.timestamp()), "_nanoseconds": 0},
])
def test_supported_shapes(value):
    assert to_utc_datetime(value) == EXPECTED


def test_object_with_converter():
    class DriverTimestamp:
        def to_datetime(self):
            return datetime(2026, 3, 10, 12, 30)

    assert to_utc_datetime(DriverTimestamp()) == EXPECTED


def test_plain_date_is_midnight_utc():
    assert to_utc_datetime(date(2026, 3, 10)) == datetime(2026, 3, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, True, "", "not a date", {"foo": 1}, object(), float("nan")])
def test_unreadable_values(value):
    assert to_utc_datetime(value) is None
