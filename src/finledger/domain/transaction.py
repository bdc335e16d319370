"""Transaction domain service.

All writes to transactions go through this service so that paired transfer
legs, opening balances and card payments keep their invariants.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

import structlog

from finledger.database.base import Database
from finledger.domain import errors
from finledger.domain.category import CategoryService
from finledger.domain.entities import (
    CategoryKind,
    DeletePlan,
    DESCRIPTION_MAX_LENGTH,
    LegRole,
    RecurrenceRule,
    TRANSFER_CATEGORY,
    Transaction as TransactionEntity,
    TransactionRole,
    new_id,
)
from finledger.domain.errors import (
    ConfirmationRequired,
    DuplicateTransactionError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from finledger.utils.amount_parser import to_money

logger = structlog.get_logger(__name__)

DEFAULT_TRANSFER_DESCRIPTION = "Transfer"


def clean_description(description: Optional[str]) -> str:
    """Trim a description and cut it to the maximum stored length."""
    return (description or "").strip()[:DESCRIPTION_MAX_LENGTH]


class TransactionService:
    """Service for managing transactions and transfers."""

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            id_factory: Generates IDs for new transactions
            clock: Returns the current date
        """
        self.db = db
        self.id_factory = id_factory
        self.clock = clock
        self.categories = CategoryService(db, id_factory=id_factory)

    def get_transaction(self, transaction_id: str) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: str) -> TransactionEntity:
        """Get a transaction or raise NotFoundError."""
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(errors.transaction_not_found(transaction_id))
        return txn

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[str] = None,
        settled: Optional[bool] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional filters.

        Args:
            account_id: Optional account ID to filter by
            start_date: Optional start date (inclusive)
            end_date: Optional end date (inclusive)
            category_id: Optional category ID to filter by
            settled: Optional settled flag to filter by

        Returns:
            List of transaction entities ordered by date
        """
        return self.db.list_transactions(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            category_id=category_id,
            settled=settled,
        )

    def find_duplicate(
        self,
        account_id: str,
        date: date,
        amount: Decimal,
        description: Optional[str] = None,
    ) -> Optional[TransactionEntity]:
        """Find an existing transaction that looks like the one being entered.

        Matches on date, account and amount, and on the description compared
        case-insensitively.

        Returns:
            The matching transaction, or None
        """
        wanted = clean_description(description).lower()
        for txn in self.db.list_transactions(
            account_id=account_id, start_date=date, end_date=date
        ):
            if txn.amount == amount and txn.description.lower() == wanted:
                return txn
        return None

    def create_transaction(
        self,
        account_id: str,
        date: date,
        amount: Decimal,
        category_id: str,
        description: Optional[str] = None,
        settled: bool = True,
        forecast: bool = False,
        recurrence_rule: Optional[RecurrenceRule] = None,
        confirmed: bool = False,
    ) -> TransactionEntity:
        """Create a normal transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            amount: Non-negative amount; direction comes from the category kind
            category_id: Category ID (must not be a Transfer category)
            description: Optional description, trimmed to 200 characters
            settled: Whether it counts toward the balance now
            forecast: Whether it is a predicted transaction
            recurrence_rule: Makes this transaction a recurring template
            confirmed: Insert even if a similar transaction exists

        Returns:
            The created transaction

        Raises:
            ValidationError: If the amount is negative
            NotFoundError: If the account or category doesn't exist
            InvariantViolation: If the category is of Transfer kind
            DuplicateTransactionError: If a similar transaction exists and
                ``confirmed`` is False
        """
        amount = to_money(amount)
        if amount < 0:
            raise ValidationError("Amount cannot be negative")
        if self.db.get_account(account_id) is None:
            raise NotFoundError(errors.account_not_found(account_id))
        category = self.categories.require_category(category_id)
        if category.kind == CategoryKind.TRANSFER:
            logger.warning("transfer_category_rejected", category_id=category_id)
            raise InvariantViolation(errors.use_transfer_operation())

        description = clean_description(description)
        if not confirmed:
            existing = self.find_duplicate(account_id, date, amount, description)
            if existing is not None:
                raise DuplicateTransactionError(
                    errors.duplicate_transaction(existing.description), existing
                )

        txn = TransactionEntity(
            id=self.id_factory(),
            account_id=account_id,
            date=date,
            amount=amount,
            category_id=category.id,
            kind=category.kind,
            description=description,
            settled=settled,
            forecast=forecast,
            recurrence_rule=recurrence_rule,
            recurrence_group_id=self.id_factory() if recurrence_rule is not None else None,
        )
        self.db.add_transaction(txn)
        logger.info(
            "transaction_created",
            transaction_id=txn.id,
            account_id=account_id,
            amount=str(amount),
            kind=category.kind.value,
        )
        return txn

    def update_transaction(
        self,
        transaction_id: str,
        account_id: Optional[str] = None,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> TransactionEntity:
        """Update transaction fields.

        Args:
            transaction_id: Transaction ID to update
            account_id: Optional new account ID
            date: Optional new date
            amount: Optional new amount
            description: Optional new description
            category_id: Optional new category ID

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction, account or category doesn't exist
            ValidationError: If the amount is negative
            InvariantViolation: If the edit would break a transfer or a locked
                opening balance, or would move a transaction across the
                Transfer category boundary of its role
        """
        original = self.require_transaction(transaction_id)
        if original.is_transfer_leg:
            raise InvariantViolation(errors.use_transfer_operation())
        if amount is not None:
            amount = to_money(amount)
            if amount < 0:
                raise ValidationError("Amount cannot be negative")

        new_date = original.date if date is None else date
        new_amount = original.amount if amount is None else amount

        if original.is_opening_balance_marker:
            if account_id is not None and account_id != original.account_id:
                raise InvariantViolation(
                    "An opening balance cannot be moved to another account"
                )
            changed = new_date != original.date or new_amount != original.amount
            if changed and self._has_other_transactions(original.account_id):
                logger.warning("opening_balance_locked", transaction_id=transaction_id)
                raise InvariantViolation(errors.opening_balance_locked())

        new_account_id = original.account_id if account_id is None else account_id
        if self.db.get_account(new_account_id) is None:
            raise NotFoundError(errors.account_not_found(new_account_id))

        category = self.categories.require_category(
            original.category_id if category_id is None else category_id
        )
        if original.role == TransactionRole.NORMAL:
            if category.kind == CategoryKind.TRANSFER:
                logger.warning("transfer_category_rejected", transaction_id=transaction_id)
                raise InvariantViolation(errors.use_transfer_operation())
        elif category.kind != CategoryKind.TRANSFER:
            logger.warning(
                "role_category_rejected", transaction_id=transaction_id, role=original.role.value
            )
            raise InvariantViolation(errors.role_requires_transfer_category(original.role.value))

        updated = replace(
            original,
            account_id=new_account_id,
            date=new_date,
            amount=new_amount,
            category_id=category.id,
            kind=category.kind,
            description=clean_description(
                original.description if description is None else description
            ),
        )

        pair = None
        if original.is_card_payment_marker and original.paired_transfer_id:
            pair = self.db.get_transaction(original.paired_transfer_id)
            if pair is not None:
                pair = replace(
                    pair,
                    date=updated.date,
                    amount=updated.amount,
                    description=updated.description,
                )

        with self.db.atomic():
            self.db.update_transaction(updated)
            if pair is not None:
                self.db.update_transaction(pair)
            if original.is_opening_balance_marker and new_date != original.date:
                account = self.db.get_account(original.account_id)
                self.db.update_account(replace(account, opening_date=new_date))
        logger.info("transaction_updated", transaction_id=transaction_id)
        return updated

    def settle_transaction(self, transaction_id: str) -> TransactionEntity:
        """Mark a transaction as settled and no longer a forecast.

        Settling is one-directional; an already settled transaction is
        returned unchanged.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        txn = self.require_transaction(transaction_id)
        if txn.settled:
            return txn
        settled = replace(txn, settled=True, forecast=False)
        self.db.update_transaction(settled)
        logger.info("transaction_settled", transaction_id=transaction_id)
        return settled

    def create_transfer(
        self,
        source_account_id: str,
        destination_account_id: str,
        amount: Decimal,
        date: date,
        description: Optional[str] = None,
    ) -> tuple[TransactionEntity, TransactionEntity]:
        """Move money between two accounts.

        Creates two settled legs with the system Transfer category that
        reference each other.

        Args:
            source_account_id: Account the money leaves
            destination_account_id: Account the money enters
            amount: Positive amount
            date: Transfer date
            description: Optional description, defaults to "Transfer"

        Returns:
            Tuple of (outflow leg, inflow leg)

        Raises:
            ValidationError: If both accounts are the same or amount <= 0
            NotFoundError: If an account or the Transfer category is missing
        """
        if source_account_id == destination_account_id:
            raise ValidationError("Source and destination accounts must be different")
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Transfer amount must be positive")
        for account_id in (source_account_id, destination_account_id):
            if self.db.get_account(account_id) is None:
                raise NotFoundError(errors.account_not_found(account_id))
        category = self.categories.get_system_category(TRANSFER_CATEGORY)

        description = clean_description(description) or DEFAULT_TRANSFER_DESCRIPTION
        outflow_id = self.id_factory()
        inflow_id = self.id_factory()
        common = dict(
            date=date,
            amount=amount,
            category_id=category.id,
            kind=category.kind,
            description=description,
            settled=True,
            forecast=False,
            role=TransactionRole.TRANSFER_LEG,
        )
        outflow = TransactionEntity(
            id=outflow_id,
            account_id=source_account_id,
            leg_role=LegRole.OUTFLOW,
            paired_transfer_id=inflow_id,
            **common,
        )
        inflow = TransactionEntity(
            id=inflow_id,
            account_id=destination_account_id,
            leg_role=LegRole.INFLOW,
            paired_transfer_id=outflow_id,
            **common,
        )

        with self.db.atomic():
            self.db.add_transaction(outflow)
            self.db.add_transaction(inflow)
        logger.info(
            "transfer_created",
            outflow_id=outflow_id,
            inflow_id=inflow_id,
            source=source_account_id,
            destination=destination_account_id,
            amount=str(amount),
        )
        return outflow, inflow

    def get_transfer_legs(
        self, transaction_id: str
    ) -> tuple[TransactionEntity, TransactionEntity]:
        """Return the (outflow, inflow) legs of the transfer containing a leg.

        Raises:
            NotFoundError: If the transaction or its pair doesn't exist
            ValidationError: If the transaction is not a transfer leg
        """
        txn = self.require_transaction(transaction_id)
        if not txn.is_transfer_leg or not txn.paired_transfer_id:
            raise ValidationError(f"Transaction {transaction_id} is not a transfer")
        pair = self.require_transaction(txn.paired_transfer_id)
        if txn.leg_role == LegRole.OUTFLOW:
            return txn, pair
        return pair, txn

    def update_transfer(
        self,
        transaction_id: str,
        source_account_id: Optional[str] = None,
        destination_account_id: Optional[str] = None,
        amount: Optional[Decimal] = None,
        date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> tuple[TransactionEntity, TransactionEntity]:
        """Update both legs of a transfer given either leg.

        Each leg keeps its direction: the outflow leg receives the source
        account and the inflow leg the destination account.

        Returns:
            Tuple of (outflow leg, inflow leg) after the update

        Raises:
            NotFoundError: If a leg or account doesn't exist
            ValidationError: If both accounts are the same or amount <= 0
        """
        outflow, inflow = self.get_transfer_legs(transaction_id)

        source = outflow.account_id if source_account_id is None else source_account_id
        destination = (
            inflow.account_id if destination_account_id is None else destination_account_id
        )
        if source == destination:
            raise ValidationError("Source and destination accounts must be different")
        new_amount = outflow.amount if amount is None else to_money(amount)
        if new_amount <= 0:
            raise ValidationError("Transfer amount must be positive")
        for account_id in (source, destination):
            if self.db.get_account(account_id) is None:
                raise NotFoundError(errors.account_not_found(account_id))

        new_date = outflow.date if date is None else date
        if description is None:
            new_description = outflow.description
        else:
            new_description = clean_description(description) or DEFAULT_TRANSFER_DESCRIPTION

        shared = dict(date=new_date, amount=new_amount, description=new_description)
        new_outflow = replace(outflow, account_id=source, **shared)
        new_inflow = replace(inflow, account_id=destination, **shared)
        with self.db.atomic():
            self.db.update_transaction(new_outflow)
            self.db.update_transaction(new_inflow)
        logger.info("transfer_updated", outflow_id=outflow.id, inflow_id=inflow.id)
        return new_outflow, new_inflow

    def plan_delete_transaction(self, transaction_id: str) -> DeletePlan:
        """Work out what deleting a transaction would remove.

        Raises:
            NotFoundError: If the transaction doesn't exist
            InvariantViolation: If it is an opening balance of an account that
                has other transactions
        """
        txn = self.require_transaction(transaction_id)

        if txn.is_transfer_leg:
            ids = (txn.id,) + ((txn.paired_transfer_id,) if txn.paired_transfer_id else ())
            return DeletePlan(
                ids=ids,
                requires_confirmation=True,
                message="This is a transfer. Deleting it removes both linked transactions.",
            )

        if txn.is_opening_balance_marker and self._has_other_transactions(txn.account_id):
            logger.warning("opening_balance_delete_blocked", transaction_id=transaction_id)
            raise InvariantViolation(errors.opening_balance_delete_blocked())

        ids = (txn.id,)
        if txn.is_card_payment_marker and txn.paired_transfer_id:
            ids += (txn.paired_transfer_id,)
        return DeletePlan(
            ids=ids,
            requires_confirmation=True,
            message=f"Delete '{txn.description}'? This cannot be undone.",
        )

    def delete_transaction(self, transaction_id: str, confirmed: bool = False) -> tuple[str, ...]:
        """Delete a transaction together with any linked transaction.

        Args:
            transaction_id: Transaction ID to delete
            confirmed: Whether the user confirmed the deletion

        Returns:
            IDs of the deleted transactions

        Raises:
            NotFoundError: If the transaction doesn't exist
            InvariantViolation: If it is a locked opening balance
            ConfirmationRequired: If not confirmed
        """
        plan = self.plan_delete_transaction(transaction_id)
        if plan.requires_confirmation and not confirmed:
            raise ConfirmationRequired(plan.message, plan)
        self.db.delete_transactions(plan.ids)
        logger.info("transaction_deleted", transaction_ids=list(plan.ids))
        return plan.ids

    def plan_bulk_delete(self, transaction_ids: Iterable[str]) -> DeletePlan:
        """Expand a selection with every transfer or payment pair.

        Raises:
            NotFoundError: If any ID doesn't exist
        """
        ids: list[str] = []
        for transaction_id in transaction_ids:
            txn = self.require_transaction(transaction_id)
            for candidate in (txn.id, txn.paired_transfer_id):
                if candidate and candidate not in ids:
                    ids.append(candidate)
        return DeletePlan(
            ids=tuple(ids),
            requires_confirmation=True,
            message=f"Delete {len(ids)} transactions (including transfer legs)?",
        )

    def bulk_delete(self, transaction_ids: Iterable[str], confirmed: bool = False) -> tuple[str, ...]:
        """Delete a selection of transactions and their pairs in one batch.

        Returns:
            IDs of the deleted transactions

        Raises:
            NotFoundError: If any ID doesn't exist
            ConfirmationRequired: If not confirmed
        """
        plan = self.plan_bulk_delete(transaction_ids)
        if plan.requires_confirmation and not confirmed:
            raise ConfirmationRequired(plan.message, plan)
        with self.db.atomic():
            self.db.delete_transactions(plan.ids)
        logger.info("transactions_bulk_deleted", count=len(plan.ids))
        return plan.ids

    def bulk_reassign_category(self, transaction_ids: Iterable[str], category_id: str) -> int:
        """Move a selection of transactions to another category.

        The kind of each transaction is re-stamped from the new category.
        Roles are not re-checked; callers exclude transfer legs, opening
        balances and card payments from the selection.

        Returns:
            Number of transactions updated

        Raises:
            NotFoundError: If the category or any transaction doesn't exist
        """
        category = self.categories.require_category(category_id)
        transactions = [self.require_transaction(tid) for tid in transaction_ids]
        with self.db.atomic():
            for txn in transactions:
                self.db.update_transaction(
                    replace(txn, category_id=category.id, kind=category.kind)
                )
        logger.info(
            "transactions_reassigned", category_id=category.id, count=len(transactions)
        )
        return len(transactions)

    def _has_other_transactions(self, account_id: str) -> bool:
        return any(
            not txn.is_opening_balance_marker
            for txn in self.db.list_transactions(account_id=account_id)
        )
