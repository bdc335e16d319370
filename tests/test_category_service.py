"""Tests for the category domain service."""

from datetime import date
from decimal import Decimal

import pytest

from finledger.domain.entities import (
    CARD_PAYMENT_CATEGORY,
    CategoryKind,
    OPENING_BALANCE_CATEGORY,
    SYSTEM_CATEGORY_NAMES,
    TRANSFER_CATEGORY,
)
from finledger.domain.errors import (
    ConflictError,
    DependencyError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)


def test_system_categories_are_seeded(category_service):
    names = {c.name for c in category_service.list_categories(kind=CategoryKind.TRANSFER)}

    assert names == {TRANSFER_CATEGORY, OPENING_BALANCE_CATEGORY, CARD_PAYMENT_CATEGORY}
    for name in SYSTEM_CATEGORY_NAMES:
        assert category_service.get_system_category(name).is_system is True


def test_ensure_system_categories_is_idempotent(category_service):
    first = category_service.ensure_system_categories()
    second = category_service.ensure_system_categories()

    assert [c.id for c in first] == [c.id for c in second]
    assert len(category_service.list_categories(kind=CategoryKind.TRANSFER)) == 3


def test_create_category(category_service):
    category = category_service.create_category(
        "  Rent ", CategoryKind.EXPENSE, monthly_budget=Decimal("1500.00")
    )

    assert category.name == "Rent"
    assert category.kind == CategoryKind.EXPENSE
    assert category.monthly_budget == Decimal("1500.00")
    assert category.is_system is False
    assert category_service.get_category(category.id).name == "Rent"


def test_create_category_requires_name(category_service):
    with pytest.raises(ValidationError):
        category_service.create_category("", CategoryKind.EXPENSE)


def test_create_category_rejects_negative_budget(category_service):
    with pytest.raises(ValidationError, match="budget"):
        category_service.create_category("Rent", CategoryKind.EXPENSE, Decimal("-5"))


def test_same_name_different_kind_is_allowed(category_service, food):
    other = category_service.create_category("food", CategoryKind.REVERSAL)

    assert other.kind == CategoryKind.REVERSAL


def test_same_name_and_kind_conflicts(category_service, food):
    with pytest.raises(ConflictError, match="already exists"):
        category_service.create_category("FOOD", CategoryKind.EXPENSE)


def test_find_category_is_case_insensitive(category_service, food):
    assert category_service.find_category("fOoD").id == food.id
    assert category_service.find_category("food", kind=CategoryKind.INCOME) is None


def test_system_category_cannot_be_deleted(category_service):
    """Even an unused system category is protected."""
    transfer = category_service.get_system_category(TRANSFER_CATEGORY)

    with pytest.raises(InvariantViolation, match="system category"):
        category_service.delete_category(transfer.id)
    assert category_service.get_category(transfer.id) is not None


def test_system_category_kind_cannot_change(category_service):
    opening = category_service.get_system_category(OPENING_BALANCE_CATEGORY)

    with pytest.raises(InvariantViolation):
        category_service.update_category(opening.id, kind=CategoryKind.INCOME)


def test_kind_change_restamps_transactions(category_service, transaction_service, checking, food):
    txn = transaction_service.create_transaction(
        checking.id, date(2024, 2, 1), Decimal("80.00"), food.id, "Refund"
    )

    category_service.update_category(food.id, kind=CategoryKind.REVERSAL)

    assert transaction_service.get_transaction(txn.id).kind == CategoryKind.REVERSAL


def test_kind_change_to_transfer_blocked_when_in_use(
    category_service, transaction_service, checking, food
):
    transaction_service.create_transaction(
        checking.id, date(2024, 2, 1), Decimal("80.00"), food.id, "Lunch"
    )

    with pytest.raises(InvariantViolation):
        category_service.update_category(food.id, kind=CategoryKind.TRANSFER)


def test_update_budget_and_clear(category_service, food):
    updated = category_service.update_category(food.id, monthly_budget=Decimal("600"))
    assert updated.monthly_budget == Decimal("600")

    cleared = category_service.update_category(food.id, clear_budget=True)
    assert cleared.monthly_budget is None


def test_rename_into_existing_conflicts(category_service, sample_categories):
    salary = sample_categories[CategoryKind.INCOME]
    category_service.create_category("Bonus", CategoryKind.INCOME)

    with pytest.raises(ConflictError):
        category_service.update_category(salary.id, name="bonus")


def test_delete_unused_category(category_service, food):
    category_service.delete_category(food.id)

    assert category_service.get_category(food.id) is None


def test_delete_category_blocked_by_transactions(
    category_service, transaction_service, checking, food
):
    transaction_service.create_transaction(
        checking.id, date(2024, 2, 1), Decimal("80.00"), food.id, "Lunch"
    )

    with pytest.raises(DependencyError, match="1 transaction"):
        category_service.delete_category(food.id)


def test_delete_category_blocked_by_card_purchases(category_service, card_service, visa, food):
    card_service.create_purchase(visa.id, date(2024, 3, 1), Decimal("90.00"), food.id)

    with pytest.raises(DependencyError, match="card purchase"):
        category_service.delete_category(food.id)


def test_delete_missing_category(category_service):
    with pytest.raises(NotFoundError):
        category_service.delete_category("nope")
