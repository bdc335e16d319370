"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from finledger.domain.errors import ValidationError


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15/01/2024" (day first), "January 15, 2024"
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Handle "last/this/next" + time period
    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            # Return Monday of last week (for consistency with "this week" and "next week")
            days_since_monday = today.weekday()
            return today - timedelta(days=days_since_monday + 7)
        elif period in ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]:
            # Last Monday, etc.
            days = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
            target_day = days.index(period)
            days_ago = (today.weekday() - target_day) % 7
            if days_ago == 0:
                days_ago = 7
            return today - timedelta(days=days_ago)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return (today.replace(month=1, day=1) + relativedelta(years=1))
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    # Brazilian DD/MM/YYYY before dateutil, which assumes month first
    iso = parse_br_date(date_str)
    if iso is not None:
        return date.fromisoformat(iso)

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Args:
        period: Period string (this-month, this-year, this-week, last-month, last-year, last-week)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        start_date = today.replace(day=1)
        end_date = today
        return (start_date, end_date)

    elif period == "this-year":
        start_date = today.replace(month=1, day=1)
        end_date = today
        return (start_date, end_date)

    elif period == "this-week":
        start_date = today - timedelta(days=today.weekday())
        end_date = today
        return (start_date, end_date)

    elif period == "last-month":
        # First day of last month
        start_date = (today - relativedelta(months=1)).replace(day=1)
        # Last day of last month (day before first day of current month)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-year":
        # January 1 of last year
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        # December 31 of last year (day before January 1 of current year)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-week":
        # Monday of last week
        days_since_monday = today.weekday()
        start_date = today - timedelta(days=days_since_monday + 7)
        # Sunday of last week (Monday + 6 days)
        end_date = start_date + timedelta(days=6)
        return (start_date, end_date)

    else:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: this-month, this-year, this-week, last-month, last-year, last-week")


def parse_br_date(date_str: str) -> Optional[str]:
    """Convert a ``DD/MM/YYYY`` string to ISO ``YYYY-MM-DD``.

    Day and month are range-checked against the real calendar.

    Returns:
        ISO date string, or None if the input is malformed
    """
    match = re.fullmatch(r"\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*", date_str or "")
    if match is None:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def format_br_date(iso_str: str) -> str:
    """Format an ISO ``YYYY-MM-DD`` string as ``DD/MM/YYYY``.

    Malformed input is returned unchanged.
    """
    parts = iso_str.split("-")
    if len(parts) != 3 or not all(parts):
        return iso_str
    year, month, day = parts
    return f"{day}/{month}/{year}"


def add_months(year: int, month: int, n: int) -> tuple[int, int]:
    """Add ``n`` months to a (year, month) pair, rolling over years.

    Months are 1-based; ``n`` may be negative.
    """
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def compute_first_billing_competency(purchase_date: date, closing_day: int) -> tuple[int, int]:
    """Return the (year, month) billing cycle a purchase first falls into.

    Purchases up to and including the closing day belong to the purchase's own
    month; later purchases roll into the following month.
    """
    if purchase_date.day <= closing_day:
        return purchase_date.year, purchase_date.month
    return add_months(purchase_date.year, purchase_date.month, 1)


def format_competency(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_competency(competency: str) -> tuple[int, int]:
    """Parse a ``YYYY-MM`` competency string.

    Raises:
        ValidationError: If the string is not a valid competency
    """
    match = re.fullmatch(r"(\d{4})-(\d{2})", competency.strip())
    if match is None or not 1 <= int(match.group(2)) <= 12:
        raise ValidationError(f"Invalid competency '{competency}': expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def competency_of(day: date) -> str:
    """Return the ``YYYY-MM`` competency a date belongs to."""
    return format_competency(day.year, day.month)


def month_bounds(competency: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month."""
    year, month = parse_competency(competency)
    first = date(year, month, 1)
    return first, first + relativedelta(months=1) - timedelta(days=1)
