"""Tests for business-day boundaries."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from callmate.core.clock import business_today, day_window, start_of_day
from callmate.core.exceptions import ValidationError


def test_today_follows_business_timezone():
    # 02:00 UTC is still the previous evening in Chicago
    now = datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)

    assert business_today(now, "UTC") == date(2024, 3, 15)
    assert business_today(now, "America/Chicago") == date(2024, 3, 14)


def test_naive_now_is_taken_as_utc():
    assert business_today(datetime(2024, 3, 15, 2, 0), "UTC") == date(2024, 3, 15)


def test_start_of_day_in_utc():
    start = start_of_day(date(2024, 7, 4), "America/Chicago")

    assert start == datetime(2024, 7, 4, 5, 0, tzinfo=timezone.utc)


def test_day_window_spans_dst_change():
    # US DST starts 2024-03-10: that local day is 23 hours long
    start, end = day_window(datetime(2024, 3, 10, 18, 0, tzinfo=timezone.utc), "America/Chicago")

    assert start == datetime(2024, 3, 10, 6, 0, tzinfo=timezone.utc)
    assert end == datetime(2024, 3, 11, 5, 0, tzinfo=timezone.utc)


def test_unknown_timezone_rejected():
    with pytest.raises(ValidationError, match="Unknown timezone"):
        business_today(datetime.now(timezone.utc), "Mars/Olympus_Mons")
