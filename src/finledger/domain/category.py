"""Category domain service."""

from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional

import structlog

from finledger.database.base import Database
from finledger.domain import errors
from finledger.domain.entities import (
    Category,
    CategoryKind,
    SYSTEM_CATEGORY_NAMES,
    new_id,
)
from finledger.domain.errors import (
    ConflictError,
    DependencyError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from finledger.utils.amount_parser import to_money

logger = structlog.get_logger(__name__)


class CategoryService:
    """Service for managing categories and the reserved system categories."""

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
    ):
        """Initialize category service.

        Args:
            db: Database instance
            id_factory: Generates IDs for new categories
        """
        self.db = db
        self.id_factory = id_factory

    def ensure_system_categories(self) -> list[Category]:
        """Create any missing reserved category.

        Safe to call repeatedly.

        Returns:
            The reserved categories, in declaration order
        """
        existing = {
            cat.name: cat
            for cat in self.db.list_categories(kind=CategoryKind.TRANSFER, is_system=True)
        }
        result = []
        with self.db.atomic():
            for name in SYSTEM_CATEGORY_NAMES:
                category = existing.get(name)
                if category is None:
                    category = Category(
                        id=self.id_factory(),
                        name=name,
                        kind=CategoryKind.TRANSFER,
                        is_system=True,
                    )
                    self.db.add_category(category)
                    logger.info("system_category_seeded", name=name)
                result.append(category)
        return result

    def get_system_category(self, name: str) -> Category:
        """Get one of the reserved categories by name.

        Raises:
            NotFoundError: If the category was never seeded
        """
        for cat in self.db.list_categories(kind=CategoryKind.TRANSFER, is_system=True):
            if cat.name == name:
                return cat
        raise NotFoundError(errors.system_category_missing(name))

    def create_category(
        self,
        name: str,
        kind: CategoryKind,
        monthly_budget: Optional[Decimal] = None,
        is_system: bool = False,
    ) -> Category:
        """Create a category.

        Args:
            name: Category name
            kind: Category kind
            monthly_budget: Optional monthly spending budget
            is_system: Mark the category as protected

        Returns:
            The created category

        Raises:
            ValidationError: If the name is empty or the budget is negative
            ConflictError: If a category with the same name and kind exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        monthly_budget = self._clean_budget(monthly_budget)
        self._check_unique(name, kind)

        category = Category(
            id=self.id_factory(),
            name=name,
            kind=kind,
            is_system=is_system,
            monthly_budget=monthly_budget,
        )
        self.db.add_category(category)
        logger.info("category_created", category_id=category.id, name=name, kind=kind.value)
        return category

    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(category_id)

    def require_category(self, category_id: str) -> Category:
        """Get a category or raise NotFoundError."""
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(errors.category_not_found(category_id))
        return category

    def find_category(self, name: str, kind: Optional[CategoryKind] = None) -> Optional[Category]:
        """Find a category by name (case-insensitive), optionally of one kind."""
        wanted = name.strip().lower()
        for cat in self.db.list_categories(kind=kind):
            if cat.name.lower() == wanted:
                return cat
        return None

    def list_categories(self, kind: Optional[CategoryKind] = None) -> list[Category]:
        """List categories.

        Args:
            kind: Optional kind to filter by

        Returns:
            List of category entities
        """
        return self.db.list_categories(kind=kind)

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        kind: Optional[CategoryKind] = None,
        monthly_budget: Optional[Decimal] = None,
        clear_budget: bool = False,
    ) -> Category:
        """Update a category.

        Changing the kind re-stamps the kind of every transaction using the
        category, in the same batch.

        Raises:
            NotFoundError: If the category doesn't exist
            InvariantViolation: If the category is a system category, or a
                category in use would become a Transfer category
            ConflictError: If the new name and kind clash with another category
        """
        category = self.require_category(category_id)
        if category.is_system:
            logger.warning("system_category_update_blocked", category_id=category_id)
            raise InvariantViolation(errors.system_category_protected(category.name))

        new_name = category.name if name is None else name.strip()
        if not new_name:
            raise ValidationError("Category name is required")
        new_kind = category.kind if kind is None else kind
        if clear_budget:
            new_budget = None
        elif monthly_budget is not None:
            new_budget = self._clean_budget(monthly_budget)
        else:
            new_budget = category.monthly_budget

        if (new_name.lower(), new_kind) != (category.name.lower(), category.kind):
            self._check_unique(new_name, new_kind, exclude_id=category_id)

        transactions = []
        if new_kind != category.kind:
            transactions = self.db.list_transactions(category_id=category_id)
            if transactions and new_kind == CategoryKind.TRANSFER:
                raise InvariantViolation(errors.use_transfer_operation())

        updated = replace(category, name=new_name, kind=new_kind, monthly_budget=new_budget)
        with self.db.atomic():
            self.db.update_category(updated)
            for txn in transactions:
                self.db.update_transaction(replace(txn, kind=new_kind))
        logger.info("category_updated", category_id=category_id)
        return updated

    def delete_category(self, category_id: str) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If the category doesn't exist
            InvariantViolation: If it is a system category (always, even unused)
            DependencyError: If transactions or card purchases reference it
        """
        category = self.require_category(category_id)
        if category.is_system:
            logger.warning("system_category_delete_blocked", category_id=category_id)
            raise InvariantViolation(errors.system_category_protected(category.name))

        transaction_count = self.db.count_transactions(category_id=category_id)
        purchase_count = len(self.db.list_purchases(category_id=category_id))
        if transaction_count > 0 or purchase_count > 0:
            raise DependencyError(
                errors.category_delete_blocked(category.name, transaction_count, purchase_count)
            )

        self.db.delete_category(category_id)
        logger.info("category_deleted", category_id=category_id)

    def _check_unique(
        self, name: str, kind: CategoryKind, exclude_id: Optional[str] = None
    ) -> None:
        existing = self.find_category(name, kind=kind)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(errors.duplicate_category_name(name, kind.value))

    @staticmethod
    def _clean_budget(monthly_budget: Optional[Decimal]) -> Optional[Decimal]:
        if monthly_budget is None:
            return None
        monthly_budget = to_money(monthly_budget)
        if monthly_budget < 0:
            raise ValidationError("Monthly budget cannot be negative")
        return monthly_budget
