"""
Calendar Windows

Closed ``[start, end]`` datetime windows used by revenue aggregation and
date-range listings. All datetimes are naive and interpreted in the store's
clock (UTC).
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Tuple, Union

from retail_admin.services.errors import ValidationError

Window = Tuple[datetime, datetime]

END_OF_DAY = time.max


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _check_year(year: int) -> None:
    if not 1 <= year <= 9999:
        raise ValidationError(f"Year must be between 1 and 9999, got {year}")


def start_of_day(value: Union[date, datetime]) -> datetime:
    return datetime.combine(_as_date(value), time.min)


def end_of_day(value: Union[date, datetime]) -> datetime:
    return datetime.combine(_as_date(value), END_OF_DAY)


def day_window(day: Union[date, datetime]) -> Window:
    """Whole calendar day containing ``day``."""
    return start_of_day(day), end_of_day(day)


def week_window(start: Union[date, datetime]) -> Window:
    """
    Seven calendar days beginning at ``start``.

    A plain date starts at midnight, a datetime starts at that instant. The
    window ends at the close of the sixth day after the start.
    """
    begin = start if isinstance(start, datetime) else start_of_day(start)
    return begin, end_of_day(_as_date(begin) + timedelta(days=6))


def month_window(year: int, month: int) -> Window:
    """First to last day of a calendar month, leap years included."""
    _check_year(year)
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return (
        datetime(year, month, 1),
        datetime.combine(date(year, month, last_day), END_OF_DAY),
    )


def year_window(year: int) -> Window:
    _check_year(year)
    return datetime(year, 1, 1), datetime.combine(date(year, 12, 31), END_OF_DAY)


def range_window(start: Union[date, datetime], end: Union[date, datetime]) -> Window:
    """
    Inclusive window between two bounds.

    Datetimes are taken as given; a plain date as the end bound covers that
    whole day.
    """
    begin = start if isinstance(start, datetime) else start_of_day(start)
    finish = end if isinstance(end, datetime) else end_of_day(end)
    return begin, finish
