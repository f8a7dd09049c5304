"""Tests for calendar helpers."""

from datetime import date, datetime

from murim_quest.clock import (
    MONDAY,
    WEDNESDAY,
    FixedClock,
    add_days,
    days_between,
    is_weekday,
    midnight,
    parse_date,
)


class TestFixedClock:
    def test_pinned(self):
        clock = FixedClock(datetime(2026, 1, 7, 13, 30))
        assert clock.today() == date(2026, 1, 7)
        assert clock.today_str() == "2026-01-07"
        assert clock.day_of_week() == WEDNESDAY
        assert clock.hour_of_day() == 13

    def test_advance(self):
        clock = FixedClock(datetime(2026, 1, 7, 23, 0))
        clock.advance(hours=2)
        assert clock.today_str() == "2026-01-08"


class TestDays:
    def test_same_day(self):
        assert days_between("2026-01-05", "2026-01-05") == 0

    def test_consecutive(self):
        assert days_between("2026-01-05", date(2026, 1, 6)) == 1

    def test_order_independent(self):
        assert days_between("2026-01-10", "2026-01-05") == 5

    def test_across_year(self):
        assert days_between("2025-12-31", "2026-01-01") == 1

    def test_parse_passthrough(self):
        day = date(2026, 1, 5)
        assert parse_date(day) is day

    def test_midnight_truncates(self):
        assert midnight(datetime(2026, 1, 5, 23, 59)) == date(2026, 1, 5)

    def test_add_days(self):
        assert add_days(date(2026, 1, 30), 3) == date(2026, 2, 2)

    def test_is_weekday(self):
        assert is_weekday(date(2026, 1, 5), MONDAY)
        assert not is_weekday(date(2026, 1, 6), MONDAY)
