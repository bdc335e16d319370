"""Recurring transaction generation.

A recurring series is a set of transactions sharing a ``recurrence_group_id``.
Exactly one of them, the template, carries the ``recurrence_rule``. Each run
continues the series from its latest member up to today, so repeated runs on
the same day create nothing new.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

import structlog
from dateutil.relativedelta import relativedelta

from finledger.database.base import Database
from finledger.domain import errors
from finledger.domain.entities import RecurrenceRule, Transaction, new_id
from finledger.domain.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

LAST_RUN_SETTING = "recurrence_last_run"


def advance_date(current: date, rule: RecurrenceRule) -> date:
    """Return the next occurrence after ``current``.

    Monthly steps add one calendar month and clamp to the last day of that
    month, so Jan 31 becomes Feb 29 and then Mar 29. Yearly steps move Feb 29
    to Feb 28.
    """
    if rule == RecurrenceRule.DAILY:
        return current + timedelta(days=1)
    if rule == RecurrenceRule.WEEKLY:
        return current + timedelta(days=7)
    if rule == RecurrenceRule.MONTHLY:
        return current + relativedelta(months=1)
    if rule == RecurrenceRule.YEARLY:
        return current + relativedelta(years=1)
    raise ValueError(f"Unknown recurrence rule: {rule}")


def generate_recurring_instances(
    transactions: Iterable[Transaction],
    today: date,
    id_factory: Callable[[], str] = new_id,
) -> list[Transaction]:
    """Create the missing occurrences of every recurring series up to today.

    Args:
        transactions: Existing transactions (non-recurring ones are ignored)
        today: Last date to generate occurrences for (inclusive)
        id_factory: Generates IDs for the new occurrences

    Returns:
        New forecast, unsettled transactions; nothing is persisted
    """
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        if txn.recurrence_group_id:
            groups[txn.recurrence_group_id].append(txn)

    generated = []
    for members in groups.values():
        template = next((txn for txn in members if txn.recurrence_rule is not None), None)
        if template is None:
            continue

        rule = template.recurrence_rule
        cursor = advance_date(max(txn.date for txn in members), rule)
        while cursor <= today:
            generated.append(
                replace(
                    template,
                    id=id_factory(),
                    date=cursor,
                    recurrence_rule=None,
                    forecast=True,
                    settled=False,
                    created_at=None,
                )
            )
            cursor = advance_date(cursor, rule)
    return generated


class RecurrenceService:
    """Service running the recurring transaction generator against the store."""

    def __init__(
        self,
        db: Database,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize recurrence service.

        Args:
            db: Database instance
            id_factory: Generates IDs for new occurrences
            clock: Returns the current date
        """
        self.db = db
        self.id_factory = id_factory
        self.clock = clock

    def list_templates(self) -> list[Transaction]:
        """List the template transaction of every active recurring series."""
        return [txn for txn in self.db.list_transactions() if txn.is_recurring_template]

    def run(self, today: Optional[date] = None) -> list[Transaction]:
        """Generate and store missing occurrences up to ``today``.

        Args:
            today: Cut-off date, defaults to the service clock

        Returns:
            The created transactions
        """
        today = today or self.clock()
        generated = generate_recurring_instances(
            self.db.list_transactions(), today, self.id_factory
        )
        if generated:
            with self.db.atomic():
                for txn in generated:
                    self.db.add_transaction(txn)
        logger.info("recurring_generated", count=len(generated), today=today.isoformat())
        return generated

    def run_if_due(self, last_run: Optional[date], today: Optional[date] = None) -> list[Transaction]:
        """Run the generator unless it already ran today.

        Args:
            last_run: Date of the previous run, if any
            today: Current date, defaults to the service clock

        Returns:
            The created transactions (empty when not due)
        """
        today = today or self.clock()
        if last_run == today:
            logger.debug("recurring_skipped", last_run=last_run.isoformat())
            return []
        return self.run(today)

    def run_daily(self) -> list[Transaction]:
        """Run at most once per day, remembering the last run in the store."""
        today = self.clock()
        stored = self.db.get_setting(LAST_RUN_SETTING)
        last_run = date.fromisoformat(stored) if stored else None
        generated = self.run_if_due(last_run, today)
        if last_run != today:
            self.db.set_setting(LAST_RUN_SETTING, today.isoformat())
        return generated

    def stop_recurrence(self, transaction_id: str) -> Transaction:
        """Stop a recurring series; occurrences already created are kept.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValidationError: If it is not a recurring template
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(errors.transaction_not_found(transaction_id))
        if not txn.is_recurring_template:
            raise ValidationError(f"Transaction {transaction_id} is not a recurring template")
        stopped = replace(txn, recurrence_rule=None)
        self.db.update_transaction(stopped)
        logger.info("recurrence_stopped", transaction_id=transaction_id)
        return stopped
