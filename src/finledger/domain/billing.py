"""Credit card billing: installments, billing cycles and card payments."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

import structlog

from finledger.database.base import Database
from finledger.domain import errors
from finledger.domain.category import CategoryService
from finledger.domain.entities import (
    CARD_PAYMENT_CATEGORY,
    CardAccount,
    CardBrand,
    CardInstallment,
    CardPurchase,
    CycleStatus,
    CycleSummary,
    Transaction,
    TransactionRole,
    new_id,
)
from finledger.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
)
from finledger.domain.transaction import clean_description
from finledger.utils.amount_parser import CENT, split_into_installments, to_money
from finledger.utils.date_parser import (
    add_months,
    compute_first_billing_competency,
    format_competency,
    parse_competency,
)

logger = structlog.get_logger(__name__)

PAYMENT_TOLERANCE = CENT


def generate_installments(
    purchase: CardPurchase,
    card: CardAccount,
    id_factory: Callable[[], str] = new_id,
) -> list[CardInstallment]:
    """Split a purchase into installments, one per billing cycle.

    Reversals produce negative installments. The first installment lands in
    the cycle the purchase date falls into; each following one a month later.
    """
    signed_total = -purchase.total_amount if purchase.is_reversal else purchase.total_amount
    parts = split_into_installments(signed_total, purchase.installment_count)
    first_year, first_month = compute_first_billing_competency(
        purchase.purchase_date, card.closing_day
    )

    installments = []
    for index, part in enumerate(parts):
        year, month = add_months(first_year, first_month, index)
        installments.append(
            CardInstallment(
                id=id_factory(),
                purchase_id=purchase.id,
                installment_number=index + 1,
                installment_amount=part,
                billing_competency=format_competency(year, month),
            )
        )
    return installments


def compute_cycle_summary(
    card_id: str,
    competency: str,
    installments: Iterable[CardInstallment],
    purchases: Iterable[CardPurchase],
    payment_transactions: Iterable[Transaction],
) -> CycleSummary:
    """Aggregate what is owed and what was paid for one card cycle.

    Args:
        card_id: Card ID
        competency: Billing cycle as ``YYYY-MM``
        installments: Installments to consider (others are filtered out)
        purchases: Purchases used to map installments to cards
        payment_transactions: Transactions; only card payments of this
            card and cycle count

    Returns:
        CycleSummary with total, paid, remaining and status
    """
    card_purchase_ids = {p.id for p in purchases if p.card_id == card_id}
    total = sum(
        (
            inst.installment_amount
            for inst in installments
            if inst.purchase_id in card_purchase_ids and inst.billing_competency == competency
        ),
        Decimal("0"),
    )
    paid = sum(
        (
            txn.amount
            for txn in payment_transactions
            if txn.is_card_payment_marker
            and txn.card_id == card_id
            and txn.billing_competency == competency
        ),
        Decimal("0"),
    )
    remaining = total - paid

    if total > 0 and remaining <= PAYMENT_TOLERANCE:
        status = CycleStatus.PAID
    elif paid > 0:
        status = CycleStatus.PARTIAL
    else:
        status = CycleStatus.OPEN
    return CycleSummary(
        card_id=card_id,
        competency=competency,
        total=total,
        paid=paid,
        remaining=remaining,
        status=status,
    )


class CardService:
    """Service for managing cards, card purchases and cycle payments."""

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize card service.

        Args:
            db: Database instance
            id_factory: Generates IDs for new records
            clock: Returns the current date
        """
        self.db = db
        self.id_factory = id_factory
        self.clock = clock
        self.categories = CategoryService(db, id_factory=id_factory)

    # Cards

    def create_card(
        self,
        nickname: str,
        closing_day: int,
        due_day: int,
        credit_limit: Optional[Decimal] = None,
        default_account_id: Optional[str] = None,
        brand: CardBrand = CardBrand.OTHER,
    ) -> CardAccount:
        """Create a credit card.

        Args:
            nickname: Card nickname
            closing_day: Day of month the cycle closes (1-31)
            due_day: Day of month the bill is due (1-31)
            credit_limit: Optional credit limit
            default_account_id: Optional account used to pay the bill
            brand: Card brand

        Returns:
            The created card

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the default account doesn't exist
        """
        card = CardAccount(
            id=self.id_factory(),
            nickname=(nickname or "").strip(),
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=None if credit_limit is None else to_money(credit_limit),
            default_account_id=default_account_id,
            brand=brand,
        )
        self._validate_card(card)
        self.db.add_card(card)
        logger.info("card_created", card_id=card.id, nickname=card.nickname)
        return card

    def get_card(self, card_id: str) -> Optional[CardAccount]:
        """Get card by ID."""
        return self.db.get_card(card_id)

    def require_card(self, card_id: str) -> CardAccount:
        """Get a card or raise NotFoundError."""
        card = self.db.get_card(card_id)
        if card is None:
            raise NotFoundError(errors.card_not_found(card_id))
        return card

    def list_cards(self) -> list[CardAccount]:
        """List all cards ordered by nickname."""
        return self.db.list_cards()

    def update_card(
        self,
        card_id: str,
        nickname: Optional[str] = None,
        closing_day: Optional[int] = None,
        due_day: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
        default_account_id: Optional[str] = None,
        brand: Optional[CardBrand] = None,
    ) -> CardAccount:
        """Update card fields.

        Existing installments keep their competencies; only purchases created
        or edited afterwards use a new closing day.

        Raises:
            NotFoundError: If the card or default account doesn't exist
            ValidationError: If a field is invalid
        """
        card = self.require_card(card_id)
        updated = replace(
            card,
            nickname=card.nickname if nickname is None else nickname.strip(),
            closing_day=card.closing_day if closing_day is None else closing_day,
            due_day=card.due_day if due_day is None else due_day,
            credit_limit=card.credit_limit if credit_limit is None else to_money(credit_limit),
            default_account_id=(
                card.default_account_id if default_account_id is None else default_account_id
            ),
            brand=card.brand if brand is None else brand,
        )
        self._validate_card(updated)
        self.db.update_card(updated)
        logger.info("card_updated", card_id=card_id)
        return updated

    def delete_card(self, card_id: str) -> None:
        """Delete a card.

        Raises:
            NotFoundError: If the card doesn't exist
            DependencyError: If any purchase references the card
        """
        card = self.require_card(card_id)
        purchase_count = len(self.db.list_purchases(card_id=card_id))
        if purchase_count > 0:
            logger.warning("card_delete_blocked", card_id=card_id, purchases=purchase_count)
            raise DependencyError(errors.card_delete_blocked(card.nickname, purchase_count))
        self.db.delete_card(card_id)
        logger.info("card_deleted", card_id=card_id)

    # Purchases

    def create_purchase(
        self,
        card_id: str,
        purchase_date: date,
        total_amount: Decimal,
        category_id: str,
        installment_count: int = 1,
        description: Optional[str] = None,
        is_reversal: bool = False,
    ) -> CardPurchase:
        """Record a card purchase and generate its installments.

        Args:
            card_id: Card ID
            purchase_date: Date of purchase
            total_amount: Positive total amount
            category_id: Category ID
            installment_count: Number of installments (>= 1)
            description: Optional description
            is_reversal: Whether this is a refund credited to the card

        Returns:
            The created purchase

        Raises:
            ValidationError: If the amount or installment count is invalid
            NotFoundError: If the card or category doesn't exist
        """
        card = self.require_card(card_id)
        purchase = CardPurchase(
            id=self.id_factory(),
            card_id=card.id,
            purchase_date=purchase_date,
            total_amount=to_money(total_amount),
            installment_count=installment_count,
            category_id=category_id,
            description=clean_description(description),
            is_reversal=is_reversal,
        )
        self._validate_purchase(purchase)
        installments = generate_installments(purchase, card, self.id_factory)

        with self.db.atomic():
            self.db.add_purchase(purchase)
            self.db.replace_installments(purchase.id, installments)
        logger.info(
            "purchase_created",
            purchase_id=purchase.id,
            card_id=card.id,
            installments=len(installments),
        )
        return purchase

    def get_purchase(self, purchase_id: str) -> Optional[CardPurchase]:
        """Get card purchase by ID."""
        return self.db.get_purchase(purchase_id)

    def require_purchase(self, purchase_id: str) -> CardPurchase:
        """Get a card purchase or raise NotFoundError."""
        purchase = self.db.get_purchase(purchase_id)
        if purchase is None:
            raise NotFoundError(errors.purchase_not_found(purchase_id))
        return purchase

    def list_purchases(self, card_id: Optional[str] = None) -> list[CardPurchase]:
        """List card purchases, optionally for one card."""
        return self.db.list_purchases(card_id=card_id)

    def update_purchase(
        self,
        purchase_id: str,
        card_id: Optional[str] = None,
        purchase_date: Optional[date] = None,
        total_amount: Optional[Decimal] = None,
        category_id: Optional[str] = None,
        installment_count: Optional[int] = None,
        description: Optional[str] = None,
        is_reversal: Optional[bool] = None,
    ) -> CardPurchase:
        """Update a purchase and regenerate all of its installments.

        Raises:
            NotFoundError: If the purchase, card or category doesn't exist
            ValidationError: If the amount or installment count is invalid
        """
        purchase = self.require_purchase(purchase_id)
        card = self.require_card(purchase.card_id if card_id is None else card_id)
        updated = replace(
            purchase,
            card_id=card.id,
            purchase_date=purchase.purchase_date if purchase_date is None else purchase_date,
            total_amount=purchase.total_amount if total_amount is None else to_money(total_amount),
            category_id=purchase.category_id if category_id is None else category_id,
            installment_count=(
                purchase.installment_count if installment_count is None else installment_count
            ),
            description=(
                purchase.description if description is None else clean_description(description)
            ),
            is_reversal=purchase.is_reversal if is_reversal is None else is_reversal,
        )
        self._validate_purchase(updated)
        installments = generate_installments(updated, card, self.id_factory)

        with self.db.atomic():
            self.db.update_purchase(updated)
            self.db.replace_installments(updated.id, installments)
        logger.info(
            "purchase_updated", purchase_id=purchase_id, installments=len(installments)
        )
        return updated

    def delete_purchase(self, purchase_id: str) -> None:
        """Delete a purchase and all of its installments.

        Raises:
            NotFoundError: If the purchase doesn't exist
        """
        self.require_purchase(purchase_id)
        self.db.delete_purchase(purchase_id)
        logger.info("purchase_deleted", purchase_id=purchase_id)

    def list_installments(
        self, card_id: Optional[str] = None, competency: Optional[str] = None
    ) -> list[CardInstallment]:
        """List installments, optionally for one card and/or one cycle."""
        if competency is not None:
            parse_competency(competency)
        return self.db.list_installments(card_id=card_id, billing_competency=competency)

    # Cycles

    def get_cycle_summary(self, card_id: str, competency: str) -> CycleSummary:
        """Compute total, paid and remaining amounts of one billing cycle.

        Raises:
            NotFoundError: If the card doesn't exist
            ValidationError: If the competency is not ``YYYY-MM``
        """
        self.require_card(card_id)
        parse_competency(competency)
        return compute_cycle_summary(
            card_id,
            competency,
            self.db.list_installments(card_id=card_id, billing_competency=competency),
            self.db.list_purchases(card_id=card_id),
            self.db.list_transactions(card_id=card_id, billing_competency=competency),
        )

    def list_cycles(self, card_id: str) -> list[CycleSummary]:
        """Summaries of every cycle with installments on a card, oldest first."""
        self.require_card(card_id)
        competencies = sorted(
            {inst.billing_competency for inst in self.db.list_installments(card_id=card_id)}
        )
        return [self.get_cycle_summary(card_id, competency) for competency in competencies]

    def pay_cycle(
        self,
        card_id: str,
        account_id: str,
        amount: Decimal,
        date: date,
        competency: str,
    ) -> Transaction:
        """Pay all or part of a card billing cycle from a bank account.

        Args:
            card_id: Card ID
            account_id: Account the payment leaves
            amount: Positive payment amount
            date: Payment date
            competency: Billing cycle as ``YYYY-MM``

        Returns:
            The card-payment transaction

        Raises:
            ValidationError: If the amount is not positive or exceeds what is
                still owed on the cycle
            NotFoundError: If the card, account or Card Payment category is
                missing
        """
        card = self.require_card(card_id)
        if self.db.get_account(account_id) is None:
            raise NotFoundError(errors.account_not_found(account_id))
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")

        summary = self.get_cycle_summary(card_id, competency)
        if amount > summary.remaining + PAYMENT_TOLERANCE:
            logger.warning(
                "card_payment_rejected",
                card_id=card_id,
                competency=competency,
                amount=str(amount),
                remaining=str(summary.remaining),
            )
            raise ValidationError(errors.payment_exceeds_remaining(amount, summary.remaining))

        category = self.categories.get_system_category(CARD_PAYMENT_CATEGORY)
        year, month = parse_competency(competency)
        payment = Transaction(
            id=self.id_factory(),
            account_id=account_id,
            date=date,
            amount=amount,
            category_id=category.id,
            kind=category.kind,
            description=f"Card payment {card.nickname} ({month:02d}/{year})",
            settled=True,
            forecast=False,
            role=TransactionRole.CARD_PAYMENT,
            card_id=card_id,
            billing_competency=competency,
        )
        self.db.add_transaction(payment)
        logger.info(
            "card_payment_created",
            transaction_id=payment.id,
            card_id=card_id,
            competency=competency,
            remaining=str(summary.remaining - amount),
        )
        return payment

    def available_limit(self, card_id: str) -> Optional[Decimal]:
        """Credit limit minus everything still unpaid across all cycles.

        Returns:
            Available limit, or None when the card has no limit

        Raises:
            NotFoundError: If the card doesn't exist
        """
        card = self.require_card(card_id)
        if card.credit_limit is None:
            return None
        owed = sum(
            (cycle.remaining for cycle in self.list_cycles(card_id) if cycle.remaining > 0),
            Decimal("0"),
        )
        return card.credit_limit - owed

    def _validate_card(self, card: CardAccount) -> None:
        if not card.nickname:
            raise ValidationError("Card nickname is required")
        for label, day in (("Closing day", card.closing_day), ("Due day", card.due_day)):
            if not 1 <= day <= 31:
                raise ValidationError(f"{label} must be between 1 and 31")
        if card.credit_limit is not None and card.credit_limit < 0:
            raise ValidationError("Credit limit cannot be negative")
        if card.default_account_id and self.db.get_account(card.default_account_id) is None:
            raise NotFoundError(errors.account_not_found(card.default_account_id))

    def _validate_purchase(self, purchase: CardPurchase) -> None:
        if purchase.total_amount <= 0:
            raise ValidationError("Purchase amount must be positive")
        if purchase.installment_count < 1:
            raise ValidationError("Installment count must be at least 1")
        self.categories.require_category(purchase.category_id)
