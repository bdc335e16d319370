"""Shared pytest fixtures for finledger tests."""

import itertools
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest
import structlog

from finledger.database.factories import create_sqlite_database
from finledger.domain.account import AccountService
from finledger.domain.billing import CardService
from finledger.domain.cashflow import CashFlowService
from finledger.domain.category import CategoryService
from finledger.domain.entities import CategoryKind
from finledger.domain.goal import GoalService
from finledger.domain.recurrence import RecurrenceService
from finledger.domain.transaction import TransactionService

TODAY = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any structlog configuration a CLI test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()
    CategoryService(db).ensure_system_categories()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Fixed clock so balance and recurrence tests do not depend on today."""
    return lambda: TODAY


@pytest.fixture
def id_factory():
    """Sequential, zero-padded IDs."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter):06d}"


@pytest.fixture
def account_service(temp_db, clock):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, clock=clock)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db, clock):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, clock=clock)


@pytest.fixture
def card_service(temp_db, clock):
    """Create a CardService with a temporary database."""
    return CardService(temp_db, clock=clock)


@pytest.fixture
def recurrence_service(temp_db, clock):
    """Create a RecurrenceService with a temporary database."""
    return RecurrenceService(temp_db, clock=clock)


@pytest.fixture
def goal_service(temp_db, clock):
    """Create a GoalService with a temporary database."""
    return GoalService(temp_db, clock=clock)


@pytest.fixture
def cashflow_service(temp_db, clock):
    """Create a CashFlowService with a temporary database."""
    return CashFlowService(temp_db, clock=clock)


@pytest.fixture
def checking(account_service):
    """Account opened 2024-01-01 with 1000.00."""
    return account_service.create_account(
        "Checking", opening_balance=Decimal("1000.00"), opening_date=date(2024, 1, 1)
    )


@pytest.fixture
def savings(account_service):
    """Account opened 2024-01-01 with 500.00."""
    return account_service.create_account(
        "Savings", opening_balance=Decimal("500.00"), opening_date=date(2024, 1, 1)
    )


@pytest.fixture
def sample_categories(category_service):
    """Create one category per user-facing kind, keyed by kind."""
    return {
        CategoryKind.INCOME: category_service.create_category("Salary", CategoryKind.INCOME),
        CategoryKind.EXPENSE: category_service.create_category("Food", CategoryKind.EXPENSE),
        CategoryKind.INVESTMENT: category_service.create_category(
            "Emergency Fund", CategoryKind.INVESTMENT
        ),
        CategoryKind.REVERSAL: category_service.create_category("Refunds", CategoryKind.REVERSAL),
    }


@pytest.fixture
def food(sample_categories):
    return sample_categories[CategoryKind.EXPENSE]


@pytest.fixture
def salary(sample_categories):
    return sample_categories[CategoryKind.INCOME]


@pytest.fixture
def visa(card_service, checking):
    """Card closing on the 20th and due on the 28th, limit 5000.00."""
    return card_service.create_card(
        "Visa",
        closing_day=20,
        due_day=28,
        credit_limit=Decimal("5000.00"),
        default_account_id=checking.id,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
