"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DuplicateTransactionError(ConflictError):
    """A very similar transaction already exists."""

    def __init__(self, message: str, existing: Any):
        super().__init__(message)
        self.existing = existing


class ConfirmationRequired(ConflictError):
    """Operation is allowed but needs explicit user confirmation."""

    def __init__(self, message: str, plan: Optional[Any] = None):
        super().__init__(message)
        self.plan = plan


class InvariantViolation(DomainError):
    """Operation would break a protected ledger invariant."""


class DependencyError(InvariantViolation):
    """Operation blocked due to dependent domain data."""


class InsufficientFundsError(DomainError):
    """Source account balance does not cover the requested amount."""

    def __init__(self, balance: Decimal, amount: Decimal):
        self.balance = balance
        self.amount = amount
        self.shortfall = amount - balance
        super().__init__(insufficient_funds(balance, amount))


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def card_not_found(card_id: str) -> str:
    """Return message for missing card."""
    return f"Card {card_id} not found"


def purchase_not_found(purchase_id: str) -> str:
    """Return message for missing card purchase."""
    return f"Card purchase {purchase_id} not found"


def goal_not_found(goal_id: str) -> str:
    """Return message for missing goal."""
    return f"Goal {goal_id} not found"


def system_category_missing(name: str) -> str:
    """Return message when a reserved category has not been seeded."""
    return f"System category '{name}' not found. Run 'init-categories' first."


def duplicate_account_name(name: str) -> str:
    return f"Account with name '{name}' already exists"


def duplicate_category_name(name: str, kind: str) -> str:
    return f"Category '{name}' of kind {kind} already exists"


def duplicate_transaction(description: str) -> str:
    return (
        f"A very similar transaction already exists ('{description}'). "
        "Confirm to add it anyway."
    )


def opening_balance_locked() -> str:
    """Return message when the opening balance can no longer change."""
    return (
        "Opening balance is locked: the account already has transactions. "
        "Use an adjustment transaction instead."
    )


def opening_balance_delete_blocked() -> str:
    return "Cannot remove the opening balance: the account already has other transactions."


def use_transfer_operation() -> str:
    """Return message when a plain transaction tries to use a Transfer category."""
    return "Transfer categories are reserved; use the transfer operation instead."


def role_requires_transfer_category(role: str) -> str:
    return f"A transaction with role '{role}' must keep a Transfer-kind category."


def system_category_protected(name: str) -> str:
    return f"Category '{name}' is a system category and cannot be deleted or have its kind changed."


def category_delete_blocked(name: str, transaction_count: int, purchase_count: int) -> str:
    """Return message when a category is still referenced."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}"
        )
    if purchase_count > 0:
        parts.append(
            f"{purchase_count} card purchase{'s' if purchase_count != 1 else ''}"
        )
    return (
        f"Cannot delete category '{name}': it has {', '.join(parts)}. "
        "Please reassign or delete them first."
    )


def account_delete_blocked(name: str, transaction_count: int) -> str:
    """Return message when account has transactions besides its opening balance."""
    return (
        f"Cannot delete account '{name}': it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please delete them first."
    )


def card_delete_blocked(nickname: str, purchase_count: int) -> str:
    return (
        f"Cannot delete card '{nickname}': it has {purchase_count} "
        f"purchase{'s' if purchase_count != 1 else ''}. "
        "Please delete them first."
    )


def goal_delete_blocked(name: str, transaction_count: int) -> str:
    return (
        f"Cannot delete goal '{name}': {transaction_count} "
        f"contribution{'s' if transaction_count != 1 else ''} reference its category."
    )


def payment_exceeds_remaining(amount: Decimal, remaining: Decimal) -> str:
    """Return message when a card payment is larger than what is still owed."""
    return f"Payment of {amount} exceeds the remaining cycle amount of {remaining}"


def insufficient_funds(balance: Decimal, amount: Decimal) -> str:
    return (
        f"Insufficient funds: balance is {balance}, requested {amount} "
        f"(short by {amount - balance})"
    )
