"""Account domain service."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import structlog

from finledger.database.base import Database
from finledger.domain import errors
from finledger.domain.balance import compute_balance
from finledger.domain.category import CategoryService
from finledger.domain.entities import (
    Account as AccountEntity,
    DeletePlan,
    OPENING_BALANCE_CATEGORY,
    Transaction,
    TransactionRole,
    new_id,
)
from finledger.domain.errors import (
    ConfirmationRequired,
    ConflictError,
    DependencyError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from finledger.utils.amount_parser import to_money

logger = structlog.get_logger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening balance"


class AccountService:
    """Service for managing accounts and their opening balances."""

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize account service.

        Args:
            db: Database instance
            id_factory: Generates IDs for new records
            clock: Returns the current date
        """
        self.db = db
        self.id_factory = id_factory
        self.clock = clock
        self.categories = CategoryService(db, id_factory=id_factory)

    def create_account(
        self,
        name: str,
        opening_balance: Decimal = Decimal("0"),
        opening_date: Optional[date] = None,
        active: bool = True,
    ) -> AccountEntity:
        """Create a new account together with its opening-balance transaction.

        Args:
            name: Account name
            opening_balance: Balance on the opening date (may be zero)
            opening_date: Opening date, defaults to today
            active: Whether the account is active

        Returns:
            The created account

        Raises:
            ValidationError: If the name is empty or the balance is negative
            ConflictError: If account name already exists (case-insensitive)
            NotFoundError: If the opening-balance system category is missing
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        opening_balance = to_money(opening_balance)
        if opening_balance < 0:
            raise ValidationError("Opening balance cannot be negative")
        self._check_unique_name(name)
        category = self.categories.get_system_category(OPENING_BALANCE_CATEGORY)

        opening_date = opening_date or self.clock()
        account = AccountEntity(
            id=self.id_factory(),
            name=name,
            opening_date=opening_date,
            active=active,
        )
        opening_txn = Transaction(
            id=self.id_factory(),
            account_id=account.id,
            date=opening_date,
            amount=opening_balance,
            category_id=category.id,
            kind=category.kind,
            description=OPENING_BALANCE_DESCRIPTION,
            settled=True,
            forecast=False,
            role=TransactionRole.OPENING_BALANCE,
        )

        with self.db.atomic():
            self.db.add_account(account)
            self.db.add_transaction(opening_txn)
        logger.info("account_created", account_id=account.id, name=name)
        return account

    def get_account(self, account_id: str) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: str) -> AccountEntity:
        """Get an account or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(errors.account_not_found(account_id))
        return account

    def list_accounts(self, active: Optional[bool] = None) -> list[AccountEntity]:
        """List accounts.

        Args:
            active: Optional active flag to filter by

        Returns:
            List of account entities
        """
        return self.db.list_accounts(active=active)

    def get_opening_balance(self, account_id: str) -> Optional[Transaction]:
        """Return the opening-balance transaction of an account."""
        for txn in self.db.list_transactions(account_id=account_id):
            if txn.is_opening_balance_marker:
                return txn
        return None

    def has_activity(self, account_id: str) -> bool:
        """Whether the account has any transaction besides its opening balance."""
        return any(
            not txn.is_opening_balance_marker
            for txn in self.db.list_transactions(account_id=account_id)
        )

    def get_balance(self, account_id: str, as_of: Optional[date] = None) -> Decimal:
        """Compute the settled balance of an account.

        Args:
            account_id: Account ID
            as_of: Optional cut-off date (inclusive)

        Raises:
            NotFoundError: If the account doesn't exist
        """
        self.require_account(account_id)
        return compute_balance(
            account_id, self.db.list_transactions(account_id=account_id), as_of=as_of
        )

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        active: Optional[bool] = None,
        opening_balance: Optional[Decimal] = None,
        opening_date: Optional[date] = None,
    ) -> AccountEntity:
        """Update an account and, when allowed, its opening balance.

        The opening balance amount and date are locked once the account has
        any other transaction.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the new name is taken
            InvariantViolation: If the opening balance is locked
        """
        account = self.require_account(account_id)
        opening_txn = self.get_opening_balance(account_id)

        new_name = account.name
        if name is not None:
            new_name = name.strip()
            if not new_name:
                raise ValidationError("Account name is required")
            if new_name.lower() != account.name.lower():
                self._check_unique_name(new_name, exclude_id=account_id)

        new_opening_txn = None
        if opening_txn is not None:
            amount = opening_txn.amount if opening_balance is None else to_money(opening_balance)
            when = opening_txn.date if opening_date is None else opening_date
            if amount < 0:
                raise ValidationError("Opening balance cannot be negative")
            if amount != opening_txn.amount or when != opening_txn.date:
                if self.has_activity(account_id):
                    logger.warning("opening_balance_locked", account_id=account_id)
                    raise InvariantViolation(errors.opening_balance_locked())
                new_opening_txn = replace(opening_txn, amount=amount, date=when)

        updated = replace(
            account,
            name=new_name,
            active=account.active if active is None else active,
            opening_date=new_opening_txn.date if new_opening_txn else account.opening_date,
        )
        with self.db.atomic():
            self.db.update_account(updated)
            if new_opening_txn is not None:
                self.db.update_transaction(new_opening_txn)
        logger.info("account_updated", account_id=account_id)
        return updated

    def plan_delete_account(self, account_id: str) -> DeletePlan:
        """Check whether an account can be deleted, without deleting it.

        Raises:
            NotFoundError: If account not found
            DependencyError: If the account has transactions besides its
                opening balance
        """
        account = self.require_account(account_id)
        transactions = self.db.list_transactions(account_id=account_id)
        others = [txn for txn in transactions if not txn.is_opening_balance_marker]
        if others:
            raise DependencyError(errors.account_delete_blocked(account.name, len(others)))
        return DeletePlan(
            ids=tuple(txn.id for txn in transactions),
            requires_confirmation=True,
            message=f"Delete account '{account.name}'? This cannot be undone.",
        )

    def delete_account(self, account_id: str, confirmed: bool = False) -> None:
        """Delete an account and its opening-balance transaction.

        Args:
            account_id: Account ID to delete
            confirmed: Whether the user confirmed the deletion

        Raises:
            NotFoundError: If account not found
            DependencyError: If the account has other transactions
            ConfirmationRequired: If not confirmed
        """
        plan = self.plan_delete_account(account_id)
        if plan.requires_confirmation and not confirmed:
            raise ConfirmationRequired(plan.message, plan)

        with self.db.atomic():
            if plan.ids:
                self.db.delete_transactions(plan.ids)
            self.db.delete_account(account_id)
        logger.info("account_deleted", account_id=account_id)

    def _check_unique_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        for acc in self.db.list_accounts():
            if acc.id != exclude_id and acc.name.lower() == name.lower():
                raise ConflictError(errors.duplicate_account_name(name))
