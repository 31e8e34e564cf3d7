"""
Age arithmetic: elapsed days between two calendar dates and the short
human-readable form shown next to each measurement.
"""
import math
from typing import Tuple

from config.settings import CHART_MONTH_DAYS, DAYS_PER_YEAR
from kidchart.models.dates import DateLike, parse_iso_date

SECONDS_PER_DAY = 24 * 60 * 60

# Display approximation, not calendar months
FORMAT_MONTH_DAYS = 30


def calculate_age_in_days(date_of_birth: DateLike,
                          measurement_date: DateLike) -> int:
    """Whole days between birth and measurement, rounded up.

    The difference is absolute: a measurement dated before the birth date
    yields a positive age rather than an error.
    """
    dob = parse_iso_date(date_of_birth)
    measured = parse_iso_date(measurement_date)
    elapsed = abs((measured - dob).total_seconds())
    return math.ceil(elapsed / SECONDS_PER_DAY)


def format_age(days: int) -> str:
    """Render an age in days as e.g. ``"5 days"``, ``"1m 5d"``, ``"1y 1m"``.

    Uses a fixed 365-day year and 30-day month.
    """
    years = days // DAYS_PER_YEAR
    remaining_days = days % DAYS_PER_YEAR
    months = remaining_days // FORMAT_MONTH_DAYS
    leftover_days = remaining_days % FORMAT_MONTH_DAYS

    if years > 0:
        if months > 0:
            return f"{years}y {months}m"
        return f"{years} year{'s' if years > 1 else ''}"
    if months > 0:
        if leftover_days > 0:
            return f"{months}m {leftover_days}d"
        return f"{months} month{'s' if months > 1 else ''}"
    return f"{days} day{'' if days == 1 else 's'}"


def age_axis(max_age_days: float) -> Tuple[str, float]:
    """Pick the chart x-axis unit and the divisor that converts days to it."""
    if max_age_days < DAYS_PER_YEAR:
        return 'months', CHART_MONTH_DAYS
    return 'years', float(DAYS_PER_YEAR)
