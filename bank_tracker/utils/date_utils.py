"""Date manipulation utilities"""

import calendar
from datetime import date

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def add_months(from_date: date, months: int) -> date:
    """
    Step a date forward by whole months.

    The day is clamped to the last day of the target month, so a purchase on
    Jan 31 falls due on Feb 29 (leap year), then Mar 31.
    """
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def month_key(day: date) -> str:
    """Year-month key used to group transactions, e.g. "2024-01" """
    return f"{day.year:04d}-{day.month:02d}"


def month_label(key: str) -> str:
    """Short display label for a month key: "2024-01" -> "Jan 2024" """
    year, month = key.split("-")
    return f"{MONTH_ABBREVIATIONS[int(month) - 1]} {year}"
