"""Tests for period resolution."""
from datetime import datetime, timedelta

import pytest

from agrimetrics.schemas.filters import DateFilter
from agrimetrics.services.analytics.date_range import PERIODS, previous_period, resolve_date_range

NOW = datetime(2024, 5, 15, 12, 30, 45)


class TestResolveDateRange:
    @pytest.mark.parametrize("period", PERIODS)
    def test_window_ends_now(self, period):
        window = resolve_date_range(period, NOW)
        assert window.gte <= window.lte <= NOW
        assert window.lte == NOW

    def test_week_is_rolling_seven_days(self):
        assert resolve_date_range("week", NOW).gte == NOW - timedelta(days=7)

    def test_month_starts_at_midnight_on_the_first(self):
        assert resolve_date_range("month", NOW).gte == datetime(2024, 5, 1)

    @pytest.mark.parametrize(
        "now, start",
        [
            (datetime(2024, 2, 10), datetime(2024, 1, 1)),
            (datetime(2024, 5, 15, 9), datetime(2024, 4, 1)),
            (datetime(2024, 9, 30, 23), datetime(2024, 7, 1)),
            (datetime(2024, 12, 31, 23, 59), datetime(2024, 10, 1)),
        ],
    )
    def test_quarter_start(self, now, start):
        assert resolve_date_range("quarter", now).gte == start

    def test_year_starts_january_first(self):
        assert resolve_date_range("year", NOW).gte == datetime(2024, 1, 1)

    def test_unknown_period_falls_back_to_month(self):
        assert resolve_date_range("decade", NOW) == resolve_date_range("month", NOW)
        assert resolve_date_range(None, NOW) == resolve_date_range("month", NOW)

    def test_first_instant_of_month(self):
        now = datetime(2024, 3, 1)
        window = resolve_date_range("month", now)
        assert window.gte == window.lte == now


class TestPreviousPeriod:
    def test_same_length_ending_at_start(self):
        window = DateFilter(gte=datetime(2024, 5, 1), lte=datetime(2024, 5, 15))
        before = previous_period(window)
        assert before.lte == window.gte
        assert before.span == window.span
        assert before.gte == datetime(2024, 4, 17)

    def test_inverted_filter_rejected(self):
        with pytest.raises(ValueError):
            DateFilter(gte=datetime(2024, 5, 2), lte=datetime(2024, 5, 1))
