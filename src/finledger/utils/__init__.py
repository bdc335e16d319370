"""Utility functions for finledger."""

from finledger.utils.date_parser import (
    parse_date,
    parse_br_date,
    add_months,
    compute_first_billing_competency,
)
from finledger.utils.amount_parser import (
    parse_amount,
    parse_currency,
    format_currency,
    split_into_installments,
)

__all__ = [
    "parse_date",
    "parse_br_date",
    "add_months",
    "compute_first_billing_competency",
    "parse_amount",
    "parse_currency",
    "format_currency",
    "split_into_installments",
]
