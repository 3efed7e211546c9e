"""Tests for the period selector."""

from datetime import datetime, timedelta

import pytest

from duo_finance.aggregation import InvalidPeriodError, parse_period, resolve_period
from duo_finance.models import Period


class TestResolvePeriod:
    """Each keyword maps to a window ending exactly at now."""

    def test_day_starts_at_local_midnight(self, now):
        window = resolve_period("day", now=now)
        assert window.start == datetime(2024, 6, 15, 0, 0, 0)
        assert window.end == now

    def test_week_is_seven_days_back(self, now):
        window = resolve_period("week", now=now)
        assert window.start == now - timedelta(days=7)
        assert window.end == now

    def test_month_is_one_calendar_month_back(self, now):
        window = resolve_period("month", now=now)
        assert window.start == datetime(2024, 5, 15, 14, 30, 0)

    def test_year_is_one_calendar_year_back(self, now):
        window = resolve_period("year", now=now)
        assert window.start == datetime(2023, 6, 15, 14, 30, 0)

    def test_month_clamps_to_end_of_shorter_month(self):
        """31 March minus one month lands on the last day of February."""
        now = datetime(2024, 3, 31, 9, 0)
        window = resolve_period("month", now=now)
        assert window.start == datetime(2024, 2, 29, 9, 0)

    def test_year_back_from_leap_day(self):
        now = datetime(2024, 2, 29, 12, 0)
        window = resolve_period("year", now=now)
        assert window.start == datetime(2023, 2, 28, 12, 0)

    def test_accepts_period_enum(self, now):
        assert resolve_period(Period.WEEK, now=now) == resolve_period("week", now=now)

    def test_defaults_to_current_time(self):
        before = datetime.now()
        window = resolve_period("day")
        after = datetime.now()
        assert before <= window.end <= after
        assert window.start <= window.end

    def test_start_never_after_end(self, now):
        for period in Period:
            window = resolve_period(period, now=now)
            assert window.start <= window.end


class TestParsePeriod:
    """Unknown keywords fail instead of silently picking a default."""

    def test_unknown_keyword_raises(self):
        with pytest.raises(InvalidPeriodError, match="fortnight"):
            parse_period("fortnight")

    def test_invalid_period_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_period("quarter")

    def test_keywords_are_case_sensitive(self):
        with pytest.raises(InvalidPeriodError):
            parse_period("Month")

    def test_known_keywords(self):
        assert [parse_period(k) for k in ("day", "week", "month", "year")] == list(Period)
