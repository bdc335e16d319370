"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: enums are stored by value and
monetary columns come back as Decimal.
"""

from dataclasses import fields
from enum import Enum
from typing import Any

from finledger.domain import entities as domain
from finledger.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    CardAccount as ORMCardAccount,
    CardPurchase as ORMCardPurchase,
    CardInstallment as ORMCardInstallment,
    InvestmentGoal as ORMInvestmentGoal,
)


def _optional_enum(enum_cls, value):
    return enum_cls(value) if value is not None else None


def to_columns(entity: Any) -> dict[str, Any]:
    """Flatten a domain entity into ORM column values.

    Enum members are stored by value; ``created_at`` is left to the column
    default when the entity does not carry one.
    """
    values = {}
    for f in fields(entity):
        value = getattr(entity, f.name)
        if f.name == "created_at" and value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        values[f.name] = value
    return values


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        opening_date=orm_account.opening_date,
        active=orm_account.active,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        kind=domain.CategoryKind(orm_category.kind),
        is_system=orm_category.is_system,
        monthly_budget=orm_category.monthly_budget,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        category_id=orm_transaction.category_id,
        kind=domain.CategoryKind(orm_transaction.kind),
        description=orm_transaction.description,
        settled=orm_transaction.settled,
        forecast=orm_transaction.forecast,
        role=domain.TransactionRole(orm_transaction.role),
        leg_role=_optional_enum(domain.LegRole, orm_transaction.leg_role),
        paired_transfer_id=orm_transaction.paired_transfer_id,
        recurrence_rule=_optional_enum(domain.RecurrenceRule, orm_transaction.recurrence_rule),
        recurrence_group_id=orm_transaction.recurrence_group_id,
        card_id=orm_transaction.card_id,
        billing_competency=orm_transaction.billing_competency,
        created_at=orm_transaction.created_at,
    )


def card_to_domain(orm_card: ORMCardAccount) -> domain.CardAccount:
    """Convert SQLAlchemy CardAccount model to domain CardAccount entity."""
    return domain.CardAccount(
        id=orm_card.id,
        nickname=orm_card.nickname,
        closing_day=orm_card.closing_day,
        due_day=orm_card.due_day,
        credit_limit=orm_card.credit_limit,
        default_account_id=orm_card.default_account_id,
        brand=domain.CardBrand(orm_card.brand),
        created_at=orm_card.created_at,
    )


def purchase_to_domain(orm_purchase: ORMCardPurchase) -> domain.CardPurchase:
    return domain.CardPurchase(
        id=orm_purchase.id,
        card_id=orm_purchase.card_id,
        purchase_date=orm_purchase.purchase_date,
        total_amount=orm_purchase.total_amount,
        installment_count=orm_purchase.installment_count,
        category_id=orm_purchase.category_id,
        description=orm_purchase.description,
        is_reversal=orm_purchase.is_reversal,
        created_at=orm_purchase.created_at,
    )


def installment_to_domain(orm_installment: ORMCardInstallment) -> domain.CardInstallment:
    return domain.CardInstallment(
        id=orm_installment.id,
        purchase_id=orm_installment.purchase_id,
        installment_number=orm_installment.installment_number,
        installment_amount=orm_installment.installment_amount,
        billing_competency=orm_installment.billing_competency,
    )


def goal_to_domain(orm_goal: ORMInvestmentGoal) -> domain.InvestmentGoal:
    return domain.InvestmentGoal(
        id=orm_goal.id,
        name=orm_goal.name,
        target_amount=orm_goal.target_amount,
        target_date=orm_goal.target_date,
        category_id=orm_goal.category_id,
        created_at=orm_goal.created_at,
    )
