from datetime import date, datetime, time, timedelta, timezone

import pytest

from campus_connect.config import parse_duration
from campus_connect.realtime.presence import InMemoryConnectionRegistry
from campus_connect.services.service_helper import (
    build_pagination,
    day_of_week_sunday_first,
    to_naive_time,
    to_utc_naive,
    truncate,
)


def test_parse_duration():
    assert parse_duration("15m") == timedelta(minutes=15)
    assert parse_duration("7d") == timedelta(days=7)
    assert parse_duration("3600") == timedelta(hours=1)
    with pytest.raises(ValueError):
        parse_duration("soon")


def test_to_utc_naive():
    assert to_utc_naive("2026-03-02T10:00:00Z") == datetime(2026, 3, 2, 10, 0)
    assert to_utc_naive("2026-03-02T17:00:00+07:00") == datetime(2026, 3, 2, 10, 0)
    aware = datetime(2026, 3, 2, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_utc_naive(aware) == datetime(2026, 3, 2, 10, 0)
    assert to_utc_naive(datetime(2026, 3, 2, 10, 0)) == datetime(2026, 3, 2, 10, 0)


def test_to_naive_time():
    assert to_naive_time("09:30Z") == time(9, 30)
    assert to_naive_time(time(9, 30, tzinfo=timezone.utc)).tzinfo is None


def test_day_of_week_is_sunday_first():
    assert day_of_week_sunday_first(date(2026, 3, 1)) == 0  # Sunday
    assert day_of_week_sunday_first(date(2026, 3, 2)) == 1
    assert day_of_week_sunday_first(date(2026, 3, 7)) == 6


def test_pagination_and_truncate():
    assert build_pagination(2, 10, 21) == {"page": 2, "limit": 10, "total": 21, "pages": 3}
    assert build_pagination(1, 10, 0)["pages"] == 0
    assert truncate("a" * 60, 50) == "a" * 50 + "..."
    assert truncate(None) == ""


def test_registry_reports_last_socket_only():
    registry = InMemoryConnectionRegistry()
    registry.add(1, "student", "a")
    registry.add(1, "student", "b")
    assert registry.remove("a") is None
    assert registry.remove("unknown") is None
    assert registry.remove("b").user_id == 1
    assert registry.count() == 0
