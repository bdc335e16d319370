"""Integration tests for end-to-end workflows."""

import os
import subprocess
import sys
from decimal import Decimal

import pytest

from finledger.cli.main import cli


def test_full_workflow(cli_runner, temp_db):
    """Test complete workflow: categories → accounts → transactions → card → reports."""
    db = ["--db-path", temp_db.database_path]

    # Step 1: Initialize categories
    result = cli_runner.invoke(cli, db + ["init-categories"])
    assert result.exit_code == 0

    # Step 2: Create accounts
    result = cli_runner.invoke(
        cli,
        db + ["account", "create", "Checking", "--opening-balance", "2000", "--opening-date", "2024-01-01"],
    )
    assert result.exit_code == 0
    assert "ID:" in result.output

    result = cli_runner.invoke(
        cli, db + ["account", "create", "Savings", "--opening-date", "2024-01-01"]
    )
    assert result.exit_code == 0

    # Step 3: Record income and an expense
    for args in (
        ["--date", "2024-03-05", "--amount", "3000", "--category", "Salary", "--description", "March"],
        ["--date", "2024-03-08", "--amount", "120", "--category", "Food", "--description", "Market"],
    ):
        result = cli_runner.invoke(
            cli, db + ["transaction", "add", "--account", "Checking"] + args
        )
        assert result.exit_code == 0, result.output

    # Step 4: Move money between accounts
    result = cli_runner.invoke(
        cli,
        db + [
            "transfer", "create",
            "--from", "Checking", "--to", "Savings",
            "--amount", "500", "--date", "2024-03-10",
        ],
    )
    assert result.exit_code == 0

    # Step 5: Card purchase and bill payment
    result = cli_runner.invoke(
        cli,
        db + [
            "card", "create", "Visa",
            "--closing-day", "20", "--due-day", "28",
            "--limit", "3000", "--account", "Checking",
        ],
    )
    assert result.exit_code == 0

    result = cli_runner.invoke(
        cli,
        db + [
            "card", "buy", "Visa",
            "--date", "2024-03-12", "--amount", "300", "--category", "Food",
            "--description", "Dinner party",
        ],
    )
    assert result.exit_code == 0

    result = cli_runner.invoke(
        cli, db + ["card", "pay", "Visa", "2024-03", "--amount", "300", "--date", "2024-03-28"]
    )
    assert result.exit_code == 0
    assert "(paid)" in result.output

    # Step 6: Reports
    result = cli_runner.invoke(cli, db + ["report", "balance"])
    assert result.exit_code == 0
    assert "R$ 4.080,00" in result.output
    assert "R$ 500,00" in result.output
    assert "R$ 4.580,00" in result.output

    result = cli_runner.invoke(cli, db + ["report", "summary", "--month", "2024-03"])
    assert result.exit_code == 0
    assert "R$ 3.000,00" in result.output
    assert "R$ 2.580,00" in result.output

    result = cli_runner.invoke(cli, db + ["transaction", "list", "--month", "2024-03"])
    assert result.exit_code == 0
    assert "Market" in result.output
    assert "Card payment Visa (03/2024)" in result.output


def test_deleting_everything_in_dependency_order(
    cli_runner, temp_db, transaction_service, checking, savings
):
    """Accounts can only be removed once their activity is gone."""
    db = ["--db-path", temp_db.database_path]
    outflow, _ = transaction_service.create_transfer(
        checking.id, savings.id, Decimal("25.00"), checking.opening_date
    )

    blocked = cli_runner.invoke(cli, db + ["account", "delete", "Savings", "--yes"])
    assert blocked.exit_code == 1

    removed = cli_runner.invoke(cli, db + ["transaction", "delete", outflow.id, "--yes"])
    assert removed.exit_code == 0
    assert "Deleted 2 transaction(s)" in removed.output

    deleted = cli_runner.invoke(cli, db + ["account", "delete", "Savings", "--yes"])
    assert deleted.exit_code == 0


@pytest.mark.parametrize(
    "statement",
    [
        "import finledger.cli.main",
        "import finledger.database",
        "from finledger.database.factories import create_sqlite_database",
        "import finledger.utils",
    ],
)
def test_packages_import_in_a_fresh_interpreter(statement):
    """Each layer can be the first one imported."""
    env = dict(os.environ, PYTHONPATH=os.pathsep.join(sys.path))
    result = subprocess.run(
        [sys.executable, "-c", statement], capture_output=True, text=True, env=env
    )

    assert result.returncode == 0, result.stderr


def test_cli_help_runs_as_a_module_entry_point():
    env = dict(os.environ, PYTHONPATH=os.pathsep.join(sys.path))
    result = subprocess.run(
        [sys.executable, "-m", "finledger.cli.main", "--help"],
        capture_output=True,
        text=True,
        env=env,
    )

    assert result.returncode == 0, result.stderr
    assert "Personal finance ledger" in result.stdout
