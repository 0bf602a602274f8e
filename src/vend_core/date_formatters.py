"""Calendar labels and period helpers shared by the report builders.

Weekdays follow Python's convention (0 = Monday .. 6 = Sunday), which is
also the order of the weekday tables.
"""

from calendar import monthrange
from datetime import date


# Day names (Monday through Sunday)
DAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
    "Saturday", "Sunday"
]

# Month names (January through December)
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def format_month_key(month_key: str) -> str:
    """Format a "YYYY-MM" key like 'March 2024'.

    Args:
        month_key: Month key in YYYY-MM format

    Returns:
        Month name followed by the year
    """
    year, month = month_key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def day_name_for_key(date_key: str) -> str:
    """Day name for a "YYYY-MM-DD" key."""
    return DAY_NAMES[date.fromisoformat(date_key).weekday()]


def days_of_month_in_period(month_key: str, date_from: date, date_to: date) -> int:
    """Count the days of a month that fall inside [date_from, date_to].

    Args:
        month_key: Month key in YYYY-MM format
        date_from: Period start (inclusive)
        date_to: Period end (inclusive)

    Returns:
        Number of overlapping days, 0 if the month is outside the period
    """
    year, month = (int(part) for part in month_key.split("-"))
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])
    start = max(first, date_from)
    end = min(last, date_to)
    return max((end - start).days + 1, 0)
