"""Month summaries, projections, net worth, daily cash flow and budget usage."""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from finledger.database.base import Database
from finledger.domain.balance import signed_amount
from finledger.domain.billing import compute_cycle_summary
from finledger.domain.entities import (
    BudgetUsage,
    CashFlowDay,
    CategoryKind,
    MonthProjection,
    MonthSummary,
    NetWorthPoint,
    Transaction,
    TransactionRole,
)
from finledger.domain.errors import ValidationError
from finledger.utils.date_parser import (
    add_months,
    format_competency,
    month_bounds,
    parse_competency,
)

ZERO = Decimal("0")


class CashFlowService:
    """Read-only reports over settled transactions of active accounts."""

    def __init__(self, db: Database, clock: Callable[[], date] = date.today):
        """Initialize cash flow service.

        Args:
            db: Database instance
            clock: Returns today's date; anchors the net worth history
        """
        self.db = db
        self.clock = clock

    def _settled(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        if account_id is not None:
            account_ids = {account_id}
        else:
            account_ids = {acc.id for acc in self.db.list_accounts(active=True)}
        return [
            txn
            for txn in self.db.list_transactions(
                account_id=account_id, start_date=start_date, end_date=end_date, settled=True
            )
            if txn.account_id in account_ids
        ]

    def month_summary(self, competency: str, account_id: Optional[str] = None) -> MonthSummary:
        """Totals of settled income and outflows within one month.

        Opening balances and reversals count as income; transfer legs are
        left out. ``card_bill`` sums the installments billed in the month and
        ``outflows`` adds it to expenses and investments. ``net`` only counts
        money that left the accounts.

        Args:
            competency: Month as ``YYYY-MM``
            account_id: Limit to one account; defaults to all active accounts

        Returns:
            MonthSummary for the month
        """
        first, last = month_bounds(competency)
        income = expenses = investments = card_payments = ZERO
        for txn in self._settled(account_id, first, last):
            if txn.kind in (CategoryKind.INCOME, CategoryKind.REVERSAL):
                income += txn.amount
            elif txn.kind == CategoryKind.EXPENSE:
                expenses += txn.amount
            elif txn.kind == CategoryKind.INVESTMENT:
                investments += txn.amount
            elif txn.role == TransactionRole.OPENING_BALANCE:
                income += txn.amount
            elif txn.role == TransactionRole.CARD_PAYMENT:
                card_payments += txn.amount
        card_bill = self._card_bill(competency, account_id)
        return MonthSummary(
            competency=competency,
            income=income,
            expenses=expenses,
            investments=investments,
            card_payments=card_payments,
            card_bill=card_bill,
            outflows=expenses + investments + card_bill,
            net=income - expenses - investments - card_payments,
        )

    def _card_bill(self, competency: str, account_id: Optional[str] = None) -> Decimal:
        card_ids = {
            card.id
            for card in self.db.list_cards()
            if account_id is None or card.default_account_id == account_id
        }
        purchases = {p.id: p for p in self.db.list_purchases()}
        total = ZERO
        for inst in self.db.list_installments(billing_competency=competency):
            purchase = purchases.get(inst.purchase_id)
            if purchase is not None and purchase.card_id in card_ids:
                total += inst.installment_amount
        return total

    def projected_balance(self, competency: str) -> MonthProjection:
        """Expected balance of the active accounts at the end of a month.

        Starts from the settled balance before the month and adds every
        transaction dated in the month, forecasts and unsettled ones
        included. Transfer legs cancel out and are skipped. Whatever is still
        unpaid on the month's card cycles is subtracted on top; payments
        already recorded count once, as outflows.

        Args:
            competency: Month as ``YYYY-MM``

        Returns:
            MonthProjection for the month
        """
        first, last = month_bounds(competency)
        active_ids = {acc.id for acc in self.db.list_accounts(active=True)}
        starting_balance = sum(
            (signed_amount(txn) for txn in self._settled(end_date=first - timedelta(days=1))),
            ZERO,
        )

        inflows = outflows = ZERO
        for txn in self.db.list_transactions(start_date=first, end_date=last):
            if txn.account_id not in active_ids or txn.role == TransactionRole.TRANSFER_LEG:
                continue
            amount = signed_amount(txn)
            if amount >= 0:
                inflows += amount
            else:
                outflows -= amount

        installments = self.db.list_installments(billing_competency=competency)
        purchases = self.db.list_purchases()
        payments = self.db.list_transactions(billing_competency=competency)
        card_bill_due = ZERO
        for card in self.db.list_cards():
            cycle = compute_cycle_summary(card.id, competency, installments, purchases, payments)
            card_bill_due += max(cycle.remaining, ZERO)

        return MonthProjection(
            competency=competency,
            starting_balance=starting_balance,
            inflows=inflows,
            outflows=outflows,
            card_bill_due=card_bill_due,
            projected_balance=starting_balance + inflows - outflows - card_bill_due,
        )

    def net_worth_history(self, months: int = 12) -> list[NetWorthPoint]:
        """Net worth at the end of each of the last ``months`` months.

        The series ends at the clock's month. Each point folds the settled
        transactions of every account, inactive ones included, up to the
        month end.

        Args:
            months: Number of months, at least 1

        Returns:
            NetWorthPoint list, oldest first

        Raises:
            ValidationError: If months is below 1
        """
        if months < 1:
            raise ValidationError("Months must be at least 1")
        today = self.clock()
        transactions = self.db.list_transactions(settled=True)

        history = []
        for offset in range(months - 1, -1, -1):
            competency = format_competency(*add_months(today.year, today.month, -offset))
            _, last = month_bounds(competency)
            net_worth = sum(
                (signed_amount(txn) for txn in transactions if txn.date <= last), ZERO
            )
            history.append(NetWorthPoint(competency=competency, net_worth=net_worth))
        return history

    def daily_cash_flow(
        self, competency: str, include_installments: bool = False
    ) -> list[CashFlowDay]:
        """Day-by-day cash flow of one month across active accounts.

        The month starts from the settled balance before its first day. Card
        payments are reported apart from other outflows. When
        ``include_installments`` is set, installments billed in the month are
        shown on their card's due day; they are informational and do not
        change the running balance.

        Args:
            competency: Month as ``YYYY-MM``
            include_installments: Show card installments on due days

        Returns:
            One CashFlowDay per calendar day of the month
        """
        first, last = month_bounds(competency)
        balance = sum(
            (signed_amount(txn) for txn in self._settled(end_date=first - timedelta(days=1))),
            ZERO,
        )

        inflows: dict[date, Decimal] = defaultdict(lambda: ZERO)
        outflows: dict[date, Decimal] = defaultdict(lambda: ZERO)
        payments: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for txn in self._settled(start_date=first, end_date=last):
            amount = signed_amount(txn)
            if txn.role == TransactionRole.CARD_PAYMENT:
                payments[txn.date] += txn.amount
            elif amount >= 0:
                inflows[txn.date] += amount
            else:
                outflows[txn.date] -= amount

        installments: dict[date, Decimal] = defaultdict(lambda: ZERO)
        if include_installments:
            for day, amount in self._installments_by_due_date(competency):
                installments[day] += amount

        days = []
        day = first
        while day <= last:
            balance += inflows[day] - outflows[day] - payments[day]
            days.append(
                CashFlowDay(
                    date=day,
                    inflows=inflows[day],
                    outflows=outflows[day],
                    payments=payments[day],
                    card_installments=installments[day],
                    closing_balance=balance,
                )
            )
            day += timedelta(days=1)
        return days

    def _installments_by_due_date(self, competency: str) -> list[tuple[date, Decimal]]:
        year, month = parse_competency(competency)
        last_day = calendar.monthrange(year, month)[1]
        purchases = {p.id: p for p in self.db.list_purchases()}
        cards = {c.id: c for c in self.db.list_cards()}

        result = []
        for inst in self.db.list_installments(billing_competency=competency):
            purchase = purchases.get(inst.purchase_id)
            card = cards.get(purchase.card_id) if purchase else None
            if card is None:
                continue
            result.append((date(year, month, min(card.due_day, last_day)), inst.installment_amount))
        return result

    def budget_usage(self, competency: str) -> list[BudgetUsage]:
        """Spending against each category's monthly budget.

        Spending is settled Expense transactions in the month plus card
        installments billed in the month, refunds excluded.

        Args:
            competency: Month as ``YYYY-MM``

        Returns:
            One BudgetUsage per category with a budget, by category name
        """
        first, last = month_bounds(competency)
        spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in self.db.list_transactions(start_date=first, end_date=last, settled=True):
            if txn.kind == CategoryKind.EXPENSE:
                spent[txn.category_id] += txn.amount

        purchases = {p.id: p for p in self.db.list_purchases()}
        for inst in self.db.list_installments(billing_competency=competency):
            purchase = purchases.get(inst.purchase_id)
            if purchase is not None and not purchase.is_reversal:
                spent[purchase.category_id] += inst.installment_amount

        usage = []
        for category in sorted(self.db.list_categories(), key=lambda c: c.name.lower()):
            if category.monthly_budget is None or category.monthly_budget <= 0:
                continue
            category_spent = spent[category.id]
            usage.append(
                BudgetUsage(
                    category_id=category.id,
                    category_name=category.name,
                    budget=category.monthly_budget,
                    spent=category_spent,
                    remaining=category.monthly_budget - category_spent,
                )
            )
        return usage
