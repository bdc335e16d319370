"""Investment goal domain service."""

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
    CategoryKind,
    DeletePlan,
    GOAL_CATEGORY_PREFIX,
    GoalProgress,
    InvestmentGoal,
    Transaction,
    new_id,
)
from finledger.domain.errors import (
    ConfirmationRequired,
    ConflictError,
    DependencyError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from finledger.domain.transaction import clean_description
from finledger.utils.amount_parser import to_money

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


def goal_category_name(goal_name: str) -> str:
    """Name of the dedicated category backing a goal."""
    return f"{GOAL_CATEGORY_PREFIX}{goal_name}"


class GoalService:
    """Service for investment goals and contributions towards them.

    Every goal owns a system category of kind Investment; contributions are
    Investment transactions on that category.
    """

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], date] = date.today,
    ):
        self.db = db
        self.id_factory = id_factory
        self.clock = clock
        self.categories = CategoryService(db, id_factory=id_factory)

    def create_goal(self, name: str, target_amount: Decimal, target_date: date) -> InvestmentGoal:
        """Create a goal and its dedicated category.

        Args:
            name: Goal name
            target_amount: Positive amount to reach
            target_date: Date the goal should be reached by

        Returns:
            The created goal

        Raises:
            ValidationError: If the name is empty or the target is not positive
            ConflictError: If a goal with this name already exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Goal name is required")
        target_amount = to_money(target_amount)
        if target_amount <= 0:
            raise ValidationError("Target amount must be positive")

        with self.db.atomic():
            category = self.categories.create_category(
                goal_category_name(name), CategoryKind.INVESTMENT, is_system=True
            )
            goal = InvestmentGoal(
                id=self.id_factory(),
                name=name,
                target_amount=target_amount,
                target_date=target_date,
                category_id=category.id,
            )
            self.db.add_goal(goal)
        logger.info("goal_created", goal_id=goal.id, name=name)
        return goal

    def get_goal(self, goal_id: str) -> Optional[InvestmentGoal]:
        """Get goal by ID."""
        return self.db.get_goal(goal_id)

    def require_goal(self, goal_id: str) -> InvestmentGoal:
        """Get a goal or raise NotFoundError."""
        goal = self.db.get_goal(goal_id)
        if goal is None:
            raise NotFoundError(errors.goal_not_found(goal_id))
        return goal

    def list_goals(self) -> list[InvestmentGoal]:
        """List goals ordered by target date."""
        return self.db.list_goals()

    def contribute(
        self,
        goal_id: str,
        account_id: str,
        amount: Decimal,
        date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        """Move money from an account into a goal.

        Args:
            goal_id: Goal ID
            account_id: Account the contribution is taken from
            amount: Positive amount
            date: Contribution date, defaults to today
            description: Optional description, defaults to the goal name

        Returns:
            The Investment transaction created

        Raises:
            NotFoundError: If the goal or account doesn't exist
            ValidationError: If the amount is not positive
            InsufficientFundsError: If the account balance today is lower
                than the amount
        """
        goal = self.require_goal(goal_id)
        if self.db.get_account(account_id) is None:
            raise NotFoundError(errors.account_not_found(account_id))
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Contribution amount must be positive")

        balance = compute_balance(
            account_id, self.db.list_transactions(account_id=account_id), as_of=self.clock()
        )
        if balance < amount:
            logger.warning(
                "contribution_rejected",
                goal_id=goal_id,
                balance=str(balance),
                amount=str(amount),
            )
            raise InsufficientFundsError(balance, amount)

        txn = Transaction(
            id=self.id_factory(),
            account_id=account_id,
            date=date or self.clock(),
            amount=amount,
            category_id=goal.category_id,
            kind=CategoryKind.INVESTMENT,
            description=clean_description(description) or goal.name,
            settled=True,
            forecast=False,
        )
        self.db.add_transaction(txn)
        logger.info("goal_contribution", goal_id=goal_id, amount=str(amount))
        return txn

    def goal_progress(self, goal_id: str) -> GoalProgress:
        """Sum of settled contributions compared to the target.

        The percentage is capped at 100.

        Raises:
            NotFoundError: If the goal doesn't exist
        """
        goal = self.require_goal(goal_id)
        current = sum(
            (
                txn.amount
                for txn in self.db.list_transactions(category_id=goal.category_id, settled=True)
                if txn.kind == CategoryKind.INVESTMENT
            ),
            Decimal("0"),
        )
        percent = min(HUNDRED, (current / goal.target_amount * HUNDRED).quantize(Decimal("0.01")))
        return GoalProgress(
            goal_id=goal.id, current=current, target=goal.target_amount, percent=percent
        )

    def update_goal(
        self,
        goal_id: str,
        name: Optional[str] = None,
        target_amount: Optional[Decimal] = None,
        target_date: Optional[date] = None,
    ) -> InvestmentGoal:
        """Update a goal; a new name is applied to its category too.

        Raises:
            NotFoundError: If the goal doesn't exist
            ValidationError: If the name is empty or the target is not positive
            ConflictError: If another category already uses the new name
        """
        goal = self.require_goal(goal_id)
        new_name = goal.name if name is None else name.strip()
        if not new_name:
            raise ValidationError("Goal name is required")
        if target_amount is not None:
            target_amount = to_money(target_amount)
            if target_amount <= 0:
                raise ValidationError("Target amount must be positive")

        category = None
        if new_name != goal.name:
            category = self.categories.require_category(goal.category_id)
            category_name = goal_category_name(new_name)
            existing = self.categories.find_category(category_name, kind=CategoryKind.INVESTMENT)
            if existing is not None and existing.id != category.id:
                raise ConflictError(
                    errors.duplicate_category_name(category_name, CategoryKind.INVESTMENT.value)
                )
            category = replace(category, name=category_name)

        updated = replace(
            goal,
            name=new_name,
            target_amount=goal.target_amount if target_amount is None else target_amount,
            target_date=goal.target_date if target_date is None else target_date,
        )
        with self.db.atomic():
            self.db.update_goal(updated)
            if category is not None:
                self.db.update_category(category)
        logger.info("goal_updated", goal_id=goal_id)
        return updated

    def rename_goal(self, goal_id: str, name: str) -> InvestmentGoal:
        """Rename a goal and its category."""
        return self.update_goal(goal_id, name=name)

    def plan_delete_goal(self, goal_id: str) -> DeletePlan:
        """Check whether a goal can be deleted, without deleting it.

        Raises:
            NotFoundError: If the goal doesn't exist
            DependencyError: If transactions reference the goal's category
        """
        goal = self.require_goal(goal_id)
        transaction_count = self.db.count_transactions(category_id=goal.category_id)
        if transaction_count > 0:
            logger.warning("goal_delete_blocked", goal_id=goal_id, transactions=transaction_count)
            raise DependencyError(errors.goal_delete_blocked(goal.name, transaction_count))
        return DeletePlan(
            ids=(goal.id, goal.category_id),
            requires_confirmation=True,
            message=f"Delete goal '{goal.name}' and its category?",
        )

    def delete_goal(self, goal_id: str, confirmed: bool = False) -> None:
        """Delete a goal together with its dedicated category.

        Raises:
            NotFoundError: If the goal doesn't exist
            DependencyError: If transactions reference the goal's category
            ConfirmationRequired: If not confirmed
        """
        plan = self.plan_delete_goal(goal_id)
        if plan.requires_confirmation and not confirmed:
            raise ConfirmationRequired(plan.message, plan)
        goal = self.require_goal(goal_id)
        with self.db.atomic():
            self.db.delete_goal(goal.id)
            self.db.delete_category(goal.category_id)
        logger.info("goal_deleted", goal_id=goal_id)
