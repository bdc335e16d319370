"""Tests for transaction and transfer commands."""

from datetime import date
from decimal import Decimal

import pytest

from finledger.cli.main import cli
from finledger.database.factories import create_sqlite_database


@pytest.fixture
def lunch(transaction_service, checking, food):
    return transaction_service.create_transaction(
        checking.id, date(2024, 2, 10), Decimal("42.00"), food.id, "Lunch"
    )


def _fresh_transactions(temp_db, **filters):
    fresh = create_sqlite_database(database_path=temp_db.database_path)
    try:
        return fresh.list_transactions(**filters)
    finally:
        fresh.disconnect()


def test_add_transaction_minimal(cli_runner, temp_db, checking, food):
    """Test adding a transaction with the required options."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "add",
            "--account", "Checking",
            "--date", "2024-01-15",
            "--amount", "200.00",
            "--category", "Food",
        ],
    )

    assert result.exit_code == 0
    assert "Added transaction" in result.output


def test_add_transaction_recurring(cli_runner, temp_db, checking, food):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "add",
            "--account", "Checking",
            "--date", "15/01/2024",
            "--amount", "99,90",
            "--category", "Food",
            "--description", "Gym",
            "--repeat", "monthly",
            "--forecast",
        ],
    )

    assert result.exit_code == 0
    (template,) = [t for t in _fresh_transactions(temp_db) if t.description == "Gym"]
    assert template.amount == Decimal("99.90")
    assert template.settled is False
    assert template.recurrence_rule is not None


def test_add_transaction_transfer_category_rejected(cli_runner, temp_db, checking):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "add",
            "--account", "Checking",
            "--date", "2024-01-15",
            "--amount", "10",
            "--category", "Transfer",
        ],
    )

    assert result.exit_code == 1
    assert "transfer operation" in result.output


def test_add_transaction_invalid_account(cli_runner, temp_db, food):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "add",
            "--account", "Nope",
            "--date", "2024-01-15",
            "--amount", "10",
            "--category", "Food",
        ],
    )

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_add_duplicate_prompts(cli_runner, temp_db, lunch):
    args = [
        "--db-path", temp_db.database_path,
        "transaction", "add",
        "--account", "Checking",
        "--date", "2024-02-10",
        "--amount", "42.00",
        "--category", "Food",
        "--description", "Lunch",
    ]

    declined = cli_runner.invoke(cli, args, input="n\n")
    assert declined.exit_code == 0
    assert "Transaction not added" in declined.output

    accepted = cli_runner.invoke(cli, args, input="y\n")
    assert accepted.exit_code == 0
    assert "Added transaction" in accepted.output
    assert len([t for t in _fresh_transactions(temp_db) if t.description == "Lunch"]) == 2


def test_list_transactions_with_month(cli_runner, temp_db, lunch):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--month", "2024-02"]
    )

    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "Lunch" in result.output
    assert "-R$ 42,00" in result.output


def test_list_transactions_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "list"])

    assert result.exit_code == 0
    assert "No transactions found" in result.output


def test_list_period_options_are_exclusive(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "list", "--this-month", "--month", "2024-01",
        ],
    )

    assert result.exit_code == 1
    assert "Only one period option" in result.output


def test_list_period_with_start_date(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "list", "--this-year", "--start-date", "2024-01-01",
        ],
    )

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_list_invalid_start_date(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "list", "--start-date", "not-a-date"],
    )

    assert result.exit_code == 1
    assert "Invalid start date" in result.output


def test_update_transaction(cli_runner, temp_db, lunch):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "update", lunch.id[:8], "--amount", "50", "--description", "Dinner",
        ],
    )

    assert result.exit_code == 0
    (updated,) = [t for t in _fresh_transactions(temp_db) if t.id == lunch.id]
    assert updated.amount == Decimal("50")
    assert updated.description == "Dinner"


def test_update_transaction_not_found(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "update", "zzz", "--amount", "1"]
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_settle_transaction(cli_runner, temp_db, transaction_service, checking, food):
    txn = transaction_service.create_transaction(
        checking.id, date(2024, 2, 1), Decimal("10"), food.id, "Bill", settled=False, forecast=True
    )

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "settle", txn.id]
    )

    assert result.exit_code == 0
    assert "Settled transaction" in result.output


def test_delete_transaction(cli_runner, temp_db, lunch):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", lunch.id, "--yes"]
    )

    assert result.exit_code == 0
    assert "Deleted 1 transaction(s)" in result.output


def test_delete_transaction_cancelled(cli_runner, temp_db, lunch):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", lunch.id], input="n\n"
    )

    assert result.exit_code == 0
    assert "Deletion cancelled" in result.output
    assert any(t.id == lunch.id for t in _fresh_transactions(temp_db))


def test_delete_transfer_leg_removes_both(cli_runner, temp_db, transaction_service, checking, savings):
    outflow, inflow = transaction_service.create_transfer(
        checking.id, savings.id, Decimal("50.00"), date(2024, 2, 1)
    )

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", inflow.id, "--yes"]
    )

    assert result.exit_code == 0
    assert "Deleted 2 transaction(s)" in result.output


def test_bulk_delete_and_reassign(cli_runner, temp_db, lunch, transaction_service, checking, food):
    snack = transaction_service.create_transaction(
        checking.id, date(2024, 2, 11), Decimal("5.00"), food.id, "Snack"
    )

    reassigned = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "transaction", "reassign", lunch.id, snack.id, "--category", "Refunds",
        ],
    )
    assert reassigned.exit_code == 0
    assert "Reassigned 2 transaction(s)" in reassigned.output

    deleted = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "bulk-delete", lunch.id, snack.id, "--yes"],
    )
    assert deleted.exit_code == 0
    assert "Deleted 2 transaction(s)" in deleted.output


class TestTransferCommands:
    """Tests for the transfer command group."""

    def test_create_transfer(self, cli_runner, temp_db, checking, savings):
        result = cli_runner.invoke(
            cli,
            [
                "--db-path", temp_db.database_path,
                "transfer", "create",
                "--from", "Checking",
                "--to", "Savings",
                "--amount", "50.00",
                "--date", "2024-02-01",
            ],
        )

        assert result.exit_code == 0
        assert "Transferred R$ 50,00 on 2024-02-01" in result.output

        balances = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
        assert "R$ 950,00" in balances.output
        assert "R$ 550,00" in balances.output

    def test_transfer_to_same_account(self, cli_runner, temp_db, checking):
        result = cli_runner.invoke(
            cli,
            [
                "--db-path", temp_db.database_path,
                "transfer", "create", "--from", "Checking", "--to", "Checking", "--amount", "5",
            ],
        )

        assert result.exit_code == 1
        assert "must be different" in result.output

    def test_update_transfer_from_inflow_leg(
        self, cli_runner, temp_db, transaction_service, checking, savings
    ):
        outflow, inflow = transaction_service.create_transfer(
            checking.id, savings.id, Decimal("50.00"), date(2024, 2, 1)
        )

        result = cli_runner.invoke(
            cli,
            ["--db-path", temp_db.database_path, "transfer", "update", inflow.id, "--amount", "80"],
        )

        assert result.exit_code == 0
        amounts = {t.id: t.amount for t in _fresh_transactions(temp_db)}
        assert amounts[outflow.id] == amounts[inflow.id] == Decimal("80")

    def test_transaction_update_rejects_transfer_leg(
        self, cli_runner, temp_db, transaction_service, checking, savings
    ):
        outflow, _ = transaction_service.create_transfer(
            checking.id, savings.id, Decimal("50.00"), date(2024, 2, 1)
        )

        result = cli_runner.invoke(
            cli,
            ["--db-path", temp_db.database_path, "transaction", "update", outflow.id, "--amount", "1"],
        )

        assert result.exit_code == 1
        assert "transfer operation" in result.output
