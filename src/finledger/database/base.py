"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Iterable
from datetime import date

# Import entities directly to avoid circular import through domain/__init__.py
from finledger.domain.entities import (
    Account,
    Category,
    CategoryKind,
    Transaction,
    CardAccount,
    CardPurchase,
    CardInstallment,
    InvestmentGoal,
)


class Database(ABC):
    """Abstract CRUD store for finledger.

    Every write commits immediately unless it runs inside ``atomic()``, in
    which case all writes of the block become visible together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into a single all-or-nothing unit.

        Nested blocks join the outermost one.
        """
        pass

    # Settings
    @abstractmethod
    def get_setting(self, key: str) -> Optional[str]:
        """Get a stored application setting."""
        pass

    @abstractmethod
    def set_setting(self, key: str, value: Optional[str]) -> None:
        """Store an application setting."""
        pass

    # Account operations
    @abstractmethod
    def add_account(self, account: Account) -> None:
        """Insert a new account."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, active: Optional[bool] = None) -> list[Account]:
        """List accounts ordered by name, optionally filtered by active flag."""
        pass

    @abstractmethod
    def update_account(self, account: Account) -> None:
        """Replace a stored account with the given entity."""
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Delete an account."""
        pass

    # Category operations
    @abstractmethod
    def add_category(self, category: Category) -> None:
        """Insert a new category."""
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(
        self, kind: Optional[CategoryKind] = None, is_system: Optional[bool] = None
    ) -> list[Category]:
        """List categories ordered by name with optional filters."""
        pass

    @abstractmethod
    def update_category(self, category: Category) -> None:
        """Replace a stored category with the given entity."""
        pass

    @abstractmethod
    def delete_category(self, category_id: str) -> None:
        """Delete a category."""
        pass

    # Transaction operations
    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> None:
        """Insert a new transaction."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[str] = None,
        settled: Optional[bool] = None,
        card_id: Optional[str] = None,
        billing_competency: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, ordered by date and ID."""
        pass

    @abstractmethod
    def count_transactions(
        self, account_id: Optional[str] = None, category_id: Optional[str] = None
    ) -> int:
        """Count transactions referencing an account and/or a category."""
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> None:
        """Replace a stored transaction with the given entity."""
        pass

    @abstractmethod
    def delete_transactions(self, transaction_ids: Iterable[str]) -> None:
        """Delete the given transactions."""
        pass

    # Card operations
    @abstractmethod
    def add_card(self, card: CardAccount) -> None:
        """Insert a new card."""
        pass

    @abstractmethod
    def get_card(self, card_id: str) -> Optional[CardAccount]:
        """Get card by ID."""
        pass

    @abstractmethod
    def list_cards(self) -> list[CardAccount]:
        """List cards ordered by nickname."""
        pass

    @abstractmethod
    def update_card(self, card: CardAccount) -> None:
        """Replace a stored card with the given entity."""
        pass

    @abstractmethod
    def delete_card(self, card_id: str) -> None:
        """Delete a card."""
        pass

    # Card purchase operations
    @abstractmethod
    def add_purchase(self, purchase: CardPurchase) -> None:
        """Insert a new card purchase."""
        pass

    @abstractmethod
    def get_purchase(self, purchase_id: str) -> Optional[CardPurchase]:
        """Get card purchase by ID."""
        pass

    @abstractmethod
    def list_purchases(
        self, card_id: Optional[str] = None, category_id: Optional[str] = None
    ) -> list[CardPurchase]:
        """List card purchases with optional filters."""
        pass

    @abstractmethod
    def update_purchase(self, purchase: CardPurchase) -> None:
        """Replace a stored card purchase with the given entity."""
        pass

    @abstractmethod
    def delete_purchase(self, purchase_id: str) -> None:
        """Delete a card purchase and its installments."""
        pass

    # Card installment operations
    @abstractmethod
    def replace_installments(
        self, purchase_id: str, installments: Iterable[CardInstallment]
    ) -> None:
        """Delete all installments of a purchase and insert the given ones."""
        pass

    @abstractmethod
    def list_installments(
        self,
        purchase_id: Optional[str] = None,
        card_id: Optional[str] = None,
        billing_competency: Optional[str] = None,
    ) -> list[CardInstallment]:
        """List installments with optional filters."""
        pass

    # Goal operations
    @abstractmethod
    def add_goal(self, goal: InvestmentGoal) -> None:
        """Insert a new goal."""
        pass

    @abstractmethod
    def get_goal(self, goal_id: str) -> Optional[InvestmentGoal]:
        """Get goal by ID."""
        pass

    @abstractmethod
    def list_goals(self) -> list[InvestmentGoal]:
        """List goals ordered by target date."""
        pass

    @abstractmethod
    def update_goal(self, goal: InvestmentGoal) -> None:
        """Replace a stored goal with the given entity."""
        pass

    @abstractmethod
    def delete_goal(self, goal_id: str) -> None:
        """Delete a goal."""
        pass
