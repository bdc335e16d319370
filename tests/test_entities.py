"""Tests for domain entities."""

import dataclasses
import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from finledger.domain.entities import (
    Account,
    CardAccount,
    CardBrand,
    Category,
    CategoryKind,
    DeletePlan,
    LegRole,
    RecurrenceRule,
    Transaction,
    TransactionRole,
    new_id,
)


def _transaction(**overrides):
    values = dict(
        id="t1",
        account_id="a1",
        date=date(2024, 1, 15),
        amount=Decimal("10.00"),
        category_id="c1",
        kind=CategoryKind.EXPENSE,
    )
    values.update(overrides)
    return Transaction(**values)


class TestAccount:
    """Tests for Account entity."""

    def test_create_account(self):
        account = Account(id="a1", name="Checking", opening_date=date(2024, 1, 1))

        assert account.active is True
        assert account.created_at is None

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(id="a1", name="Checking", opening_date=date(2024, 1, 1))

        with pytest.raises(dataclasses.FrozenInstanceError):
            account.name = "Other"

    def test_replace_produces_new_instance(self):
        account = Account(id="a1", name="Checking", opening_date=date(2024, 1, 1))

        renamed = dataclasses.replace(account, name="Main")

        assert renamed.name == "Main"
        assert account.name == "Checking"

    def test_account_equality(self):
        created_at = datetime.now(UTC)
        account1 = Account("a1", "Test", date(2024, 1, 1), created_at=created_at)
        account2 = Account("a1", "Test", date(2024, 1, 1), created_at=created_at)
        account3 = Account("a2", "Test", date(2024, 1, 1), created_at=created_at)

        assert account1 == account2
        assert account1 != account3


class TestCategory:
    def test_defaults(self):
        category = Category(id="c1", name="Food", kind=CategoryKind.EXPENSE)

        assert category.is_system is False
        assert category.monthly_budget is None

    def test_kind_compares_to_its_value(self):
        assert CategoryKind("reversal") is CategoryKind.REVERSAL
        assert CategoryKind.INCOME == "income"


class TestTransaction:
    """Tests for Transaction entity."""

    def test_defaults(self):
        txn = _transaction()

        assert txn.role == TransactionRole.NORMAL
        assert txn.settled is True
        assert txn.forecast is False
        assert txn.leg_role is None

    def test_role_properties(self):
        assert _transaction(role=TransactionRole.OPENING_BALANCE).is_opening_balance_marker
        assert _transaction(role=TransactionRole.CARD_PAYMENT).is_card_payment_marker
        leg = _transaction(
            role=TransactionRole.TRANSFER_LEG,
            kind=CategoryKind.TRANSFER,
            leg_role=LegRole.INFLOW,
            paired_transfer_id="t2",
        )
        assert leg.is_transfer_leg
        assert not leg.is_opening_balance_marker
        assert not _transaction().is_transfer_leg

    def test_recurring_template(self):
        assert _transaction(recurrence_rule=RecurrenceRule.WEEKLY).is_recurring_template
        assert not _transaction().is_recurring_template


class TestCardAccount:
    def test_defaults(self):
        card = CardAccount(id="k1", nickname="Visa", closing_day=20, due_day=28)

        assert card.brand == CardBrand.OTHER
        assert card.credit_limit is None
        assert card.default_account_id is None


def test_delete_plan_is_plain_data():
    plan = DeletePlan(ids=("t1", "t2"), requires_confirmation=True, message="Delete 2?")

    assert len(plan.ids) == 2
    with pytest.raises(dataclasses.FrozenInstanceError):
        plan.message = "changed"


def test_new_id_is_unique():
    assert new_id() != new_id()
    assert len(new_id()) == 36
