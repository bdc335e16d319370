"""CLI helpers for resolving entities and parsing option values."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, TypeVar

import click

from finledger.database.base import Database
from finledger.domain.entities import CategoryKind
from finledger.utils.amount_parser import parse_amount
from finledger.utils.date_parser import get_date_range, month_bounds, parse_competency, parse_date

T = TypeVar("T")

SHORT_ID_LENGTH = 8


def short_id(entity_id: str) -> str:
    """Abbreviated ID for table output; any unique prefix is accepted back."""
    return entity_id[:SHORT_ID_LENGTH]


def _fail(ctx: click.Context, message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


def _match(
    ctx: click.Context,
    label: str,
    reference: str,
    candidates: Iterable[T],
    get_id: Callable[[T], str],
    get_name: Callable[[T], str] | None = None,
) -> T:
    """Find one candidate by exact ID, name (case-insensitive) or ID prefix."""
    candidates = list(candidates)
    wanted = reference.strip()
    for item in candidates:
        if get_id(item) == wanted:
            return item
    if get_name is not None:
        by_name = [item for item in candidates if get_name(item).lower() == wanted.lower()]
        if len(by_name) == 1:
            return by_name[0]
        if len(by_name) > 1:
            _fail(ctx, f"{label} '{reference}' is ambiguous; use its ID")
    by_prefix = [item for item in candidates if get_id(item).startswith(wanted)]
    if len(by_prefix) == 1 and wanted:
        return by_prefix[0]
    if len(by_prefix) > 1:
        _fail(ctx, f"{label} ID prefix '{reference}' is ambiguous")
    _fail(ctx, f"{label} '{reference}' not found")


def resolve_account_or_exit(ctx: click.Context, db: Database, account: str) -> str:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    return _match(
        ctx, "Account", account, db.list_accounts(), lambda a: a.id, lambda a: a.name
    ).id


def resolve_category_or_exit(
    ctx: click.Context, db: Database, category: str, kind: CategoryKind | None = None
) -> str:
    """Resolve category name or ID, optionally restricted to one kind."""
    return _match(
        ctx, "Category", category, db.list_categories(kind=kind), lambda c: c.id, lambda c: c.name
    ).id


def resolve_card_or_exit(ctx: click.Context, db: Database, card: str) -> str:
    """Resolve card nickname or ID."""
    return _match(
        ctx, "Card", card, db.list_cards(), lambda c: c.id, lambda c: c.nickname
    ).id


def resolve_goal_or_exit(ctx: click.Context, db: Database, goal: str) -> str:
    """Resolve goal name or ID."""
    return _match(ctx, "Goal", goal, db.list_goals(), lambda g: g.id, lambda g: g.name).id


def resolve_transaction_or_exit(ctx: click.Context, db: Database, transaction: str) -> str:
    """Resolve a transaction ID or unique ID prefix."""
    return _match(ctx, "Transaction", transaction, db.list_transactions(), lambda t: t.id).id


def resolve_purchase_or_exit(ctx: click.Context, db: Database, purchase: str) -> str:
    """Resolve a card purchase ID or unique ID prefix."""
    return _match(ctx, "Card purchase", purchase, db.list_purchases(), lambda p: p.id).id


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a CLI date, or exit with a CLI error."""
    try:
        return parse_date(value)
    except ValueError as e:
        _fail(ctx, f"Invalid {label}: {e}")


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    """Parse a CLI amount, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        _fail(ctx, f"Invalid {label} format: {e}")


def parse_competency_or_exit(ctx: click.Context, value: str) -> str:
    """Validate a ``YYYY-MM`` month, or exit with a CLI error."""
    try:
        year, month = parse_competency(value)
    except ValueError as e:
        _fail(ctx, str(e))
    return f"{year:04d}-{month:02d}"


def resolve_date_range_or_exit(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    month: str | None = None,
) -> tuple[date | None, date | None]:
    """Turn a period flag, a ``YYYY-MM`` month or explicit dates into a range.

    Either bound may be None when only one explicit date is given.
    """
    selected = [period for period, is_set in period_flags.items() if is_set]
    if month is not None:
        selected.append("month")

    if len(selected) > 1:
        _fail(ctx, "Only one period option (--month, --this-month, ...) can be given at a time.")
    if selected and (start_date or end_date):
        _fail(ctx, "Period options cannot be combined with --start-date or --end-date.")

    if month is not None:
        return month_bounds(parse_competency_or_exit(ctx, month))
    if selected:
        return get_date_range(selected[0])

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None
    if start is not None and end is not None and start > end:
        _fail(ctx, "Start date is after end date.")
    return start, end
