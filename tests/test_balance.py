"""Tests for balance calculation."""

from datetime import date
from decimal import Decimal

from finledger.domain.balance import compute_balance, signed_amount
from finledger.domain.entities import CategoryKind, LegRole, Transaction, TransactionRole


def _txn(txn_id, amount, kind, account_id="acc-1", when=date(2024, 1, 10), **kwargs):
    return Transaction(
        id=txn_id,
        account_id=account_id,
        date=when,
        amount=Decimal(amount),
        category_id="cat",
        kind=kind,
        **kwargs,
    )


def test_signed_amount_by_kind():
    assert signed_amount(_txn("1", "10", CategoryKind.INCOME)) == Decimal("10")
    assert signed_amount(_txn("2", "10", CategoryKind.REVERSAL)) == Decimal("10")
    assert signed_amount(_txn("3", "10", CategoryKind.EXPENSE)) == Decimal("-10")
    assert signed_amount(_txn("4", "10", CategoryKind.INVESTMENT)) == Decimal("-10")


def test_signed_amount_by_role():
    opening = _txn("1", "10", CategoryKind.TRANSFER, role=TransactionRole.OPENING_BALANCE)
    payment = _txn("2", "10", CategoryKind.TRANSFER, role=TransactionRole.CARD_PAYMENT)
    outflow = _txn(
        "3", "10", CategoryKind.TRANSFER, role=TransactionRole.TRANSFER_LEG, leg_role=LegRole.OUTFLOW
    )
    inflow = _txn(
        "4", "10", CategoryKind.TRANSFER, role=TransactionRole.TRANSFER_LEG, leg_role=LegRole.INFLOW
    )

    assert signed_amount(opening) == Decimal("10")
    assert signed_amount(payment) == Decimal("-10")
    assert signed_amount(outflow) == Decimal("-10")
    assert signed_amount(inflow) == Decimal("10")


def test_compute_balance_mixed_ledger():
    """Opening 1000, salary 3000, groceries 250.50, unsettled rent 1200."""
    transactions = [
        _txn("1", "1000.00", CategoryKind.TRANSFER, role=TransactionRole.OPENING_BALANCE,
             when=date(2024, 1, 1)),
        _txn("2", "3000.00", CategoryKind.INCOME, when=date(2024, 1, 5)),
        _txn("3", "250.50", CategoryKind.EXPENSE, when=date(2024, 1, 7)),
        _txn("4", "1200.00", CategoryKind.EXPENSE, when=date(2024, 1, 10), settled=False),
    ]

    assert compute_balance("acc-1", transactions) == Decimal("3749.50")


def test_compute_balance_ignores_other_accounts():
    transactions = [
        _txn("1", "100", CategoryKind.INCOME),
        _txn("2", "999", CategoryKind.INCOME, account_id="acc-2"),
    ]

    assert compute_balance("acc-1", transactions) == Decimal("100")


def test_compute_balance_as_of_is_inclusive():
    transactions = [
        _txn("1", "100", CategoryKind.INCOME, when=date(2024, 1, 1)),
        _txn("2", "40", CategoryKind.EXPENSE, when=date(2024, 1, 2)),
        _txn("3", "10", CategoryKind.EXPENSE, when=date(2024, 1, 3)),
    ]

    assert compute_balance("acc-1", transactions, as_of=date(2024, 1, 2)) == Decimal("60")


def test_compute_balance_empty_is_zero():
    assert compute_balance("acc-1", []) == Decimal("0")


def test_compute_balance_is_repeatable():
    transactions = [_txn("1", "12.34", CategoryKind.INCOME), _txn("2", "2.34", CategoryKind.EXPENSE)]

    first = compute_balance("acc-1", transactions)
    second = compute_balance("acc-1", transactions)

    assert first == second == Decimal("10.00")
