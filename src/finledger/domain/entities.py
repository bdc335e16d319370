"""Domain model entities for finledger.

These are pure data classes representing business concepts, independent of
database schema. Updates produce new instances via ``dataclasses.replace``;
the store persists whole entities.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class CategoryKind(str, Enum):
    """Kind of a category, copied onto every transaction using it."""

    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    TRANSFER = "transfer"
    REVERSAL = "reversal"


class TransactionRole(str, Enum):
    """Structural role of a transaction, fixed at creation."""

    NORMAL = "normal"
    TRANSFER_LEG = "transfer_leg"
    OPENING_BALANCE = "opening_balance"
    CARD_PAYMENT = "card_payment"


class LegRole(str, Enum):
    """Direction of one side of a paired transfer."""

    OUTFLOW = "outflow"
    INFLOW = "inflow"


class RecurrenceRule(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    ELO = "elo"
    AMEX = "amex"
    HIPERCARD = "hipercard"
    OTHER = "other"


class CycleStatus(str, Enum):
    """Payment status of a card billing cycle."""

    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"


# Names of the reserved categories seeded in every ledger.
TRANSFER_CATEGORY = "Transfer"
OPENING_BALANCE_CATEGORY = "Opening Balance"
CARD_PAYMENT_CATEGORY = "Card Payment"
SYSTEM_CATEGORY_NAMES = (TRANSFER_CATEGORY, OPENING_BALANCE_CATEGORY, CARD_PAYMENT_CATEGORY)

GOAL_CATEGORY_PREFIX = "Goal: "
DESCRIPTION_MAX_LENGTH = 200


def new_id() -> str:
    """Default ID factory for new entities."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Account:
    """Bank account domain entity. Its balance is always derived."""

    id: str
    name: str
    opening_date: date
    active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Category:
    """Category domain entity."""

    id: str
    name: str
    kind: CategoryKind
    is_system: bool = False
    monthly_budget: Optional[Decimal] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    ``amount`` is always a non-negative magnitude; direction comes from
    ``kind``, ``role`` and, for transfer legs, ``leg_role``.
    """

    id: str
    account_id: str
    date: date
    amount: Decimal
    category_id: str
    kind: CategoryKind
    description: str = ""
    settled: bool = True
    forecast: bool = False
    role: TransactionRole = TransactionRole.NORMAL
    leg_role: Optional[LegRole] = None
    paired_transfer_id: Optional[str] = None
    recurrence_rule: Optional[RecurrenceRule] = None
    recurrence_group_id: Optional[str] = None
    card_id: Optional[str] = None
    billing_competency: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_opening_balance_marker(self) -> bool:
        return self.role == TransactionRole.OPENING_BALANCE

    @property
    def is_card_payment_marker(self) -> bool:
        return self.role == TransactionRole.CARD_PAYMENT

    @property
    def is_transfer_leg(self) -> bool:
        return self.role == TransactionRole.TRANSFER_LEG

    @property
    def is_recurring_template(self) -> bool:
        return self.recurrence_rule is not None


@dataclass(frozen=True)
class CardAccount:
    """Credit card domain entity."""

    id: str
    nickname: str
    closing_day: int
    due_day: int
    credit_limit: Optional[Decimal] = None
    default_account_id: Optional[str] = None
    brand: CardBrand = CardBrand.OTHER
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CardPurchase:
    """Credit card purchase, split into one or more installments."""

    id: str
    card_id: str
    purchase_date: date
    total_amount: Decimal
    installment_count: int
    category_id: str
    description: str = ""
    is_reversal: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CardInstallment:
    """One installment of a card purchase, assigned to a billing competency."""

    id: str
    purchase_id: str
    installment_number: int
    installment_amount: Decimal
    billing_competency: str


@dataclass(frozen=True)
class InvestmentGoal:
    """Savings goal bound to its own dedicated Investment category."""

    id: str
    name: str
    target_amount: Decimal
    target_date: date
    category_id: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CycleSummary:
    """Aggregated totals of one card billing cycle."""

    card_id: str
    competency: str
    total: Decimal
    paid: Decimal
    remaining: Decimal
    status: CycleStatus


@dataclass(frozen=True)
class DeletePlan:
    """Side-effect-free preview of a delete operation.

    Callers inspect ``requires_confirmation`` and show ``message`` before
    calling the mutating operation with ``confirmed=True``.
    """

    ids: tuple[str, ...]
    requires_confirmation: bool
    message: str


@dataclass(frozen=True)
class GoalProgress:
    goal_id: str
    current: Decimal
    target: Decimal
    percent: Decimal


@dataclass(frozen=True)
class MonthSummary:
    """Settled income and outflows of one month."""

    competency: str
    income: Decimal
    expenses: Decimal
    investments: Decimal
    card_payments: Decimal
    card_bill: Decimal
    outflows: Decimal
    net: Decimal


@dataclass(frozen=True)
class MonthProjection:
    """Expected balance at the end of a month, forecasts included.

    ``card_bill_due`` is what is still unpaid on the month's card cycles.
    """

    competency: str
    starting_balance: Decimal
    inflows: Decimal
    outflows: Decimal
    card_bill_due: Decimal
    projected_balance: Decimal


@dataclass(frozen=True)
class NetWorthPoint:
    competency: str
    net_worth: Decimal


@dataclass(frozen=True)
class CashFlowDay:
    """One day of a month's cash-flow projection."""

    date: date
    inflows: Decimal
    outflows: Decimal
    payments: Decimal
    card_installments: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class BudgetUsage:
    category_id: str
    category_name: str
    budget: Decimal
    spent: Decimal
    remaining: Decimal
