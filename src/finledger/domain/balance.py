"""Ledger balance calculation.

Balances are never stored; they are folded from an account's settled
transactions every time they are needed.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finledger.domain.entities import CategoryKind, LegRole, Transaction, TransactionRole


def signed_amount(txn: Transaction) -> Decimal:
    """Return the transaction amount with the sign it has on its account.

    Income and reversals add; expenses and investments subtract. Among
    Transfer-kind records, opening balances add, card payments subtract and
    transfer legs follow their ``leg_role``.
    """
    if txn.kind in (CategoryKind.INCOME, CategoryKind.REVERSAL):
        return txn.amount
    if txn.kind in (CategoryKind.EXPENSE, CategoryKind.INVESTMENT):
        return -txn.amount

    if txn.role == TransactionRole.OPENING_BALANCE:
        return txn.amount
    if txn.role == TransactionRole.CARD_PAYMENT:
        return -txn.amount
    if txn.leg_role == LegRole.OUTFLOW:
        return -txn.amount
    return txn.amount


def compute_balance(
    account_id: str,
    transactions: Iterable[Transaction],
    as_of: Optional[date] = None,
) -> Decimal:
    """Compute an account balance from its transactions.

    Only settled transactions count. This is a pure, single-pass fold.

    Args:
        account_id: Account to compute the balance for
        transactions: Any transaction collection; other accounts are ignored
        as_of: Optional cut-off date (inclusive)

    Returns:
        Balance as a Decimal
    """
    balance = Decimal("0")
    for txn in transactions:
        if txn.account_id != account_id or not txn.settled:
            continue
        if as_of is not None and txn.date > as_of:
            continue
        balance += signed_amount(txn)
    return balance
