"""Tests for date helpers."""

import pytest
from datetime import datetime, timedelta, timezone
from freezegun import freeze_time

from tasklite.utils.dates import format_due, is_overdue, parse_due_input, parse_timestamp, to_iso, utc_now

NOON = datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
def test_parse_timestamp_variants():
    assert parse_timestamp("2024-12-09T12:00:00Z") == NOON
    assert parse_timestamp("2024-12-09T12:00:00+00:00") == NOON
    assert parse_timestamp("2024-12-09T12:00:00") == NOON
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


@pytest.mark.unit
def test_parse_due_input():
    assert parse_due_input("2024-12-15") == datetime(2024, 12, 15, 23, 59, tzinfo=timezone.utc)
    assert parse_due_input("2024-12-15T09:30") == datetime(2024, 12, 15, 9, 30, tzinfo=timezone.utc)
    assert parse_due_input("  ") is None
    with pytest.raises(ValueError):
        parse_due_input("next tuesday")


@pytest.mark.unit
def test_to_iso():
    assert to_iso(NOON) == "2024-12-09T12:00:00+00:00"
    assert to_iso(None) is None


@pytest.mark.unit
@pytest.mark.parametrize("offset_days,label", [
    (0, "due today"),
    (1, "due tomorrow"),
    (5, "due in 5 days"),
    (-1, "overdue by 1 day"),
    (-3, "overdue by 3 days"),
])
def test_format_due(offset_days, label):
    assert format_due(NOON + timedelta(days=offset_days), now=NOON) == label


@pytest.mark.unit
def test_format_due_none():
    assert format_due(None) is None


@pytest.mark.unit
@freeze_time("2024-12-09 12:00:00")
def test_is_overdue_uses_clock():
    assert utc_now() == NOON
    assert is_overdue(NOON - timedelta(minutes=1)) is True
    assert is_overdue(NOON + timedelta(minutes=1)) is False
    assert is_overdue(None) is False
