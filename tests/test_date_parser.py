"""Tests for date parsing and billing-cycle date arithmetic."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from finledger.domain.errors import ValidationError
from finledger.utils.date_parser import (
    add_months,
    competency_of,
    compute_first_billing_competency,
    format_br_date,
    get_date_range,
    month_bounds,
    parse_br_date,
    parse_competency,
    parse_date,
)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    result = parse_date("today")
    assert result == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    result = parse_date("yesterday")
    assert result == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    """Test parsing 'tomorrow'."""
    result = parse_date("tomorrow")
    assert result == date.today() + timedelta(days=1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    today = date.today()
    if today.month == 1:
        expected = date(today.year - 1, 12, 1)
    else:
        expected = date(today.year, today.month - 1, 1)
    assert result == expected


def test_parse_last_week():
    """Test parsing 'last week'."""
    result = parse_date("last week")
    # Should be Monday of last week (for consistency with "this week" and "next week")
    today = date.today()
    days_since_monday = today.weekday()
    expected = today - timedelta(days=days_since_monday + 7)
    assert result == expected
    # Verify it's a Monday (weekday 0)
    assert result.weekday() == 0


def test_parse_this_month():
    """Test parsing 'this month'."""
    result = parse_date("this month")
    today = date.today()
    assert result == date(today.year, today.month, 1)


def test_parse_this_year():
    """Test parsing 'this year'."""
    result = parse_date("this year")
    today = date.today()
    assert result == date(today.year, 1, 1)


def test_parse_last_year():
    """Test parsing 'last year'."""
    result = parse_date("last year")
    today = date.today()
    assert result == date(today.year - 1, 1, 1)


def test_parse_invalid_relative():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)


def test_get_date_range_this_month():
    """Test get_date_range for this-month."""
    today = date.today()
    start, end = get_date_range("this-month")
    assert start == date(today.year, today.month, 1)
    assert end == today


def test_get_date_range_this_year():
    """Test get_date_range for this-year."""
    today = date.today()
    start, end = get_date_range("this-year")
    assert start == date(today.year, 1, 1)
    assert end == today


def test_get_date_range_this_week():
    """Test get_date_range for this-week."""
    today = date.today()
    start, end = get_date_range("this-week")
    expected_start = today - timedelta(days=today.weekday())
    assert start == expected_start
    assert start.weekday() == 0  # Should be Monday
    assert end == today


def test_get_date_range_last_month():
    """Test get_date_range for last-month."""
    today = date.today()
    start, end = get_date_range("last-month")
    # First day of last month
    expected_start = (today - relativedelta(months=1)).replace(day=1)
    # Last day of last month (day before first day of current month)
    expected_end = today.replace(day=1) - timedelta(days=1)
    assert start == expected_start
    assert end == expected_end
    # Verify end is the last day of last month
    assert end.month == expected_start.month
    assert end.year == expected_start.year


def test_get_date_range_last_year():
    """Test get_date_range for last-year."""
    today = date.today()
    start, end = get_date_range("last-year")
    # January 1 of last year
    expected_start = today.replace(month=1, day=1) - relativedelta(years=1)
    # December 31 of last year
    expected_end = today.replace(month=1, day=1) - timedelta(days=1)
    assert start == expected_start
    assert end == expected_end
    assert start.month == 1
    assert start.day == 1
    assert end.month == 12
    assert end.day == 31
    assert start.year == end.year == today.year - 1


def test_get_date_range_last_week():
    """Test get_date_range for last-week."""
    today = date.today()
    start, end = get_date_range("last-week")
    # Monday of last week
    days_since_monday = today.weekday()
    expected_start = today - timedelta(days=days_since_monday + 7)
    # Sunday of last week (Monday + 6 days)
    expected_end = expected_start + timedelta(days=6)
    assert start == expected_start
    assert end == expected_end
    assert start.weekday() == 0  # Monday
    assert end.weekday() == 6  # Sunday
    assert (end - start).days == 6


def test_get_date_range_invalid_period():
    """Test get_date_range with invalid period."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")


def test_get_date_range_edge_case_month_boundary():
    """Test get_date_range handles month boundaries correctly."""
    # Test on first day of month
    # This is a bit tricky to test without mocking, but we can verify the logic
    today = date.today()
    start, end = get_date_range("this-month")
    # If today is the first day of the month, start and end should be the same
    if today.day == 1:
        assert start == end == today

    # Test last-month when current month is January
    if today.month == 1:
        start, end = get_date_range("last-month")
        assert start.month == 12
        assert start.year == today.year - 1
        assert end.month == 12
        assert end.year == today.year - 1


def test_get_date_range_edge_case_year_boundary():
    """Test get_date_range handles year boundaries correctly."""
    today = date.today()
    # Test last-year
    start, end = get_date_range("last-year")
    assert start.year == today.year - 1
    assert end.year == today.year - 1
    assert start == date(today.year - 1, 1, 1)
    assert end == date(today.year - 1, 12, 31)



def test_parse_date_day_first_slash_format():
    """Test that DD/MM/YYYY is read day first even when both could be months."""
    assert parse_date("03/02/2024") == date(2024, 2, 3)


class TestBrazilianDates:
    """Tests for DD/MM/YYYY parsing and formatting."""

    def test_parse_valid(self):
        assert parse_br_date("29/02/2024") == "2024-02-29"
        assert parse_br_date(" 5/1/2024 ") == "2024-01-05"

    @pytest.mark.parametrize(
        "value", ["31/02/2024", "29/02/2023", "00/01/2024", "12/13/2024", "2024-01-01", "", "abc"]
    )
    def test_parse_invalid_returns_none(self, value):
        assert parse_br_date(value) is None

    def test_format(self):
        assert format_br_date("2024-03-07") == "07/03/2024"

    def test_format_malformed_is_unchanged(self):
        assert format_br_date("not a date") == "not a date"


class TestBillingCompetency:
    """Tests for month arithmetic used by card billing."""

    def test_add_months_rolls_over_year(self):
        assert add_months(2024, 11, 3) == (2025, 2)
        assert add_months(2024, 12, 1) == (2025, 1)

    def test_add_months_negative(self):
        assert add_months(2024, 1, -1) == (2023, 12)
        assert add_months(2024, 3, -14) == (2023, 1)

    def test_add_months_zero(self):
        assert add_months(2024, 6, 0) == (2024, 6)

    def test_purchase_after_closing_day_goes_to_next_month(self):
        assert compute_first_billing_competency(date(2024, 3, 25), 20) == (2024, 4)

    def test_purchase_before_closing_day_stays_in_month(self):
        assert compute_first_billing_competency(date(2024, 3, 10), 20) == (2024, 3)

    def test_purchase_on_closing_day_stays_in_month(self):
        assert compute_first_billing_competency(date(2024, 3, 20), 20) == (2024, 3)

    def test_december_purchase_rolls_into_january(self):
        assert compute_first_billing_competency(date(2024, 12, 28), 5) == (2025, 1)

    def test_parse_competency(self):
        assert parse_competency("2024-04") == (2024, 4)

    @pytest.mark.parametrize("value", ["2024-13", "2024-4", "04/2024", ""])
    def test_parse_competency_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_competency(value)

    def test_competency_of(self):
        assert competency_of(date(2024, 2, 29)) == "2024-02"

    def test_month_bounds(self):
        assert month_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))
