"""
Unit Tests - Calendar Windows
"""
from datetime import date, datetime, time

import pytest

from retail_admin.services.errors import ValidationError
from retail_admin.services.windows import (
    day_window,
    month_window,
    range_window,
    week_window,
    year_window,
)


class TestDayWindow:
    """Tests for day_window"""

    def test_covers_whole_day(self):
        start, end = day_window(date(2024, 3, 15))

        assert start == datetime(2024, 3, 15, 0, 0, 0)
        assert end == datetime.combine(date(2024, 3, 15), time.max)

    def test_datetime_input_uses_its_date(self):
        assert day_window(datetime(2024, 3, 15, 17, 30)) == day_window(date(2024, 3, 15))

    def test_sub_millisecond_instant_before_midnight_included(self):
        """Test the day ends at the last microsecond, not at .999"""
        start, end = day_window(date(2024, 3, 15))
        moment = datetime(2024, 3, 15, 23, 59, 59, 999500)

        assert start <= moment <= end
        assert end < datetime(2024, 3, 16)


class TestWeekWindow:
    """Tests for week_window"""

    def test_seven_days_from_date(self):
        start, end = week_window(date(2024, 3, 11))

        assert start == datetime(2024, 3, 11)
        assert end.date() == date(2024, 3, 17)
        assert end.time() == time.max

    def test_datetime_start_kept_as_given(self):
        start, end = week_window(datetime(2024, 3, 11, 8, 30))

        assert start == datetime(2024, 3, 11, 8, 30)
        assert end.date() == date(2024, 3, 17)

    def test_crosses_month_boundary(self):
        _, end = week_window(date(2024, 2, 27))
        assert end.date() == date(2024, 3, 4)


class TestMonthWindow:
    """Tests for month_window"""

    @pytest.mark.parametrize(
        "year, month, last_day",
        [
            (2024, 2, 29),
            (2023, 2, 28),
            (1900, 2, 28),
            (2000, 2, 29),
            (2024, 4, 30),
            (2024, 12, 31),
            (2024, 1, 31),
        ],
    )
    def test_last_day(self, year, month, last_day):
        start, end = month_window(year, month)

        assert start == datetime(year, month, 1)
        assert end.date() == date(year, month, last_day)
        assert end.time() == time.max

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(ValidationError):
            month_window(2024, month)

    def test_invalid_year(self):
        with pytest.raises(ValidationError):
            month_window(0, 1)


class TestYearAndRangeWindows:
    """Tests for year_window and range_window"""

    def test_year_window(self):
        start, end = year_window(2024)

        assert start == datetime(2024, 1, 1)
        assert end == datetime.combine(date(2024, 12, 31), time.max)

    def test_range_with_dates_covers_end_day(self):
        start, end = range_window(date(2024, 3, 1), date(2024, 3, 2))

        assert start == datetime(2024, 3, 1)
        assert end == datetime.combine(date(2024, 3, 2), time.max)

    def test_range_with_datetimes_is_exact(self):
        start, end = range_window(datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 17))

        assert start == datetime(2024, 3, 1, 9)
        assert end == datetime(2024, 3, 1, 17)
