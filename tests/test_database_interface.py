"""Tests for the Database interface and its SQLAlchemy implementation."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from finledger.database.factories import create_sqlite_database
from finledger.domain import entities
from finledger.domain.entities import CategoryKind, LegRole, TransactionRole


def _account(account_id="acc-1", name="Checking"):
    return entities.Account(id=account_id, name=name, opening_date=date(2024, 1, 1))


def _category(category_id="cat-1", name="Food", kind=CategoryKind.EXPENSE):
    return entities.Category(id=category_id, name=name, kind=kind)


class TestDatabaseInterface:
    """Tests to verify the Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        temp_db.add_account(_account())

        account = temp_db.get_account("acc-1")

        assert isinstance(account, entities.Account)
        assert account.name == "Checking"
        assert account.opening_date == date(2024, 1, 1)
        assert isinstance(account.created_at, datetime)

    def test_missing_entities_are_none(self, temp_db):
        assert temp_db.get_account("nope") is None
        assert temp_db.get_transaction("nope") is None
        assert temp_db.get_card("nope") is None
        assert temp_db.get_goal("nope") is None

    def test_transaction_round_trip_keeps_enums_and_decimals(self, temp_db):
        temp_db.add_account(_account())
        temp_db.add_category(_category(kind=CategoryKind.TRANSFER))
        temp_db.add_transaction(
            entities.Transaction(
                id="txn-1",
                account_id="acc-1",
                date=date(2024, 2, 1),
                amount=Decimal("12.34"),
                category_id="cat-1",
                kind=CategoryKind.TRANSFER,
                role=TransactionRole.TRANSFER_LEG,
                leg_role=LegRole.OUTFLOW,
                paired_transfer_id="txn-2",
            )
        )

        txn = temp_db.get_transaction("txn-1")

        assert isinstance(txn, entities.Transaction)
        assert txn.amount == Decimal("12.34")
        assert txn.kind is CategoryKind.TRANSFER
        assert txn.role is TransactionRole.TRANSFER_LEG
        assert txn.leg_role is LegRole.OUTFLOW
        assert txn.paired_transfer_id == "txn-2"

    def test_list_categories_filters(self, temp_db):
        temp_db.add_category(_category("cat-a", "Food", CategoryKind.EXPENSE))
        temp_db.add_category(_category("cat-b", "Salary", CategoryKind.INCOME))

        expense = temp_db.list_categories(kind=CategoryKind.EXPENSE)
        system = temp_db.list_categories(is_system=True)

        assert [c.id for c in expense] == ["cat-a"]
        assert all(c.is_system for c in system)
        assert len(system) == 3

    def test_update_missing_raises(self, temp_db):
        with pytest.raises(ValueError, match="not found"):
            temp_db.update_account(_account("ghost"))


class TestAtomic:
    """Tests for grouping writes into one commit."""

    def test_atomic_rolls_back_every_write(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.atomic():
                temp_db.add_account(_account("acc-1", "One"))
                temp_db.add_account(_account("acc-2", "Two"))
                raise RuntimeError("boom")

        assert temp_db.list_accounts() == []

    def test_atomic_commits_on_success(self, temp_db):
        with temp_db.atomic():
            temp_db.add_account(_account("acc-1", "One"))
            with temp_db.atomic():
                temp_db.add_account(_account("acc-2", "Two"))

        fresh = create_sqlite_database(database_path=temp_db.database_path)
        try:
            assert {a.id for a in fresh.list_accounts()} == {"acc-1", "acc-2"}
        finally:
            fresh.disconnect()

    def test_nested_failure_rolls_back_outer_block(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.atomic():
                temp_db.add_account(_account("acc-1", "One"))
                with temp_db.atomic():
                    raise RuntimeError("boom")

        assert temp_db.get_account("acc-1") is None


class TestSettings:
    """Tests for key/value settings."""

    def test_missing_setting_is_none(self, temp_db):
        assert temp_db.get_setting("recurrence_last_run") is None

    def test_set_and_overwrite(self, temp_db):
        temp_db.set_setting("recurrence_last_run", "2024-03-14")
        temp_db.set_setting("recurrence_last_run", "2024-03-15")

        assert temp_db.get_setting("recurrence_last_run") == "2024-03-15"
