"""Transaction management commands."""

import click

from finledger.cli.error_handling import confirm_plan, handle_domain_error
from finledger.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
    resolve_date_range_or_exit,
    resolve_transaction_or_exit,
    short_id,
)
from finledger.domain.balance import signed_amount
from finledger.domain.entities import RecurrenceRule
from finledger.domain.errors import DomainError, DuplicateTransactionError
from finledger.domain.transaction import TransactionService
from finledger.utils.amount_parser import format_currency

RULE_CHOICES = click.Choice([rule.value for rule in RecurrenceRule], case_sensitive=False)


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    required=True,
    help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Transaction amount (e.g., 123.45 or 1.234,56)")
@click.option("--category", required=True, help="Category name or ID (not a Transfer category)")
@click.option("--description", help="Transaction description")
@click.option("--forecast", is_flag=True, help="Record as a forecast that has not happened yet")
@click.option("--repeat", type=RULE_CHOICES, help="Repeat this transaction on a schedule")
@click.option("--yes", is_flag=True, help="Add even if a similar transaction exists")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date: str,
    amount: str,
    category: str,
    description: str | None,
    forecast: bool,
    repeat: str | None,
    yes: bool,
):
    """Add a transaction.

    Examples:
        finledger transaction add --account Checking --date 2024-01-15 --amount 200 --category Food
        finledger transaction add --account Checking --date today --amount 5000 \\
            --category Salary --repeat monthly
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    account_id = resolve_account_or_exit(ctx, db, account)
    category_id = resolve_category_or_exit(ctx, db, category)
    txn_date = parse_date_or_exit(ctx, date)
    txn_amount = parse_amount_or_exit(ctx, amount)

    kwargs = dict(
        account_id=account_id,
        date=txn_date,
        amount=txn_amount,
        category_id=category_id,
        description=description,
        settled=not forecast,
        forecast=forecast,
        recurrence_rule=RecurrenceRule(repeat.lower()) if repeat else None,
    )
    try:
        try:
            txn = service.create_transaction(confirmed=yes, **kwargs)
        except DuplicateTransactionError as e:
            if not click.confirm(f"{e} Add anyway?"):
                click.echo("Transaction not added.")
                return
            txn = service.create_transaction(confirmed=True, **kwargs)
        click.echo(f"Added transaction {txn.id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option("--month", help="Only this month (YYYY-MM)")
@click.option("--this-month", is_flag=True, help="Only the current month")
@click.option("--last-month", is_flag=True, help="Only last month")
@click.option("--this-year", is_flag=True, help="Only this year")
@click.option("--category", help="Category name or ID")
@click.option("--account", help="Account name or ID")
@click.option("--unsettled", is_flag=True, help="Show only transactions not yet settled")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    category: str | None,
    account: str | None,
    unsettled: bool,
):
    """View transactions with optional filters.

    Amounts are shown with the sign they have on their account.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    start, end = resolve_date_range_or_exit(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={"this-month": this_month, "last-month": last_month, "this-year": this_year},
        month=month,
    )
    account_id = resolve_account_or_exit(ctx, db, account) if account else None
    category_id = resolve_category_or_exit(ctx, db, category) if category else None

    transactions = service.list_transactions(
        account_id=account_id,
        start_date=start,
        end_date=end,
        category_id=category_id,
        settled=False if unsettled else None,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in db.list_accounts()}
    categories = {cat.id: cat.name for cat in db.list_categories()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<9} {'Date':<11} {'Amount':>16} {'Account':<18} {'Category':<20} {'Description':<30}"
    )
    click.echo("-" * 110)
    for txn in transactions:
        flags = "" if txn.settled else " *"
        if txn.is_recurring_template:
            flags += " R"
        click.echo(
            f"{short_id(txn.id):<9} {txn.date.isoformat():<11} "
            f"{format_currency(signed_amount(txn)):>16} "
            f"{accounts.get(txn.account_id, 'Unknown')[:18]:<18} "
            f"{categories.get(txn.category_id, 'Unknown')[:20]:<20} "
            f"{txn.description[:30]:<30}{flags}"
        )
    click.echo("-" * 110)
    click.echo("* not settled   R recurring template")


@transaction_group.command("update")
@click.argument("transaction", metavar="TRANSACTION_ID")
@click.option("--account", help="Account name or ID")
@click.option("--date", help="Transaction date")
@click.option("--amount", help="Transaction amount")
@click.option("--description", help="Transaction description")
@click.option("--category", help="Category name or ID")
@click.pass_context
def update_transaction(
    ctx,
    transaction: str,
    account: str | None,
    date: str | None,
    amount: str | None,
    description: str | None,
    category: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Use 'transfer update' for
    transfers.

    Examples:
        finledger transaction update 3f2a9c1b --amount 75.00
        finledger transaction update 3f2a9c1b --category Food
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    transaction_id = resolve_transaction_or_exit(ctx, db, transaction)
    account_id = resolve_account_or_exit(ctx, db, account) if account else None
    category_id = resolve_category_or_exit(ctx, db, category) if category else None
    txn_date = parse_date_or_exit(ctx, date) if date else None
    txn_amount = parse_amount_or_exit(ctx, amount) if amount is not None else None

    try:
        service.update_transaction(
            transaction_id,
            account_id=account_id,
            date=txn_date,
            amount=txn_amount,
            description=description,
            category_id=category_id,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("settle")
@click.argument("transaction", metavar="TRANSACTION_ID")
@click.pass_context
def settle_transaction(ctx, transaction: str) -> None:
    """Mark a forecast transaction as settled."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    transaction_id = resolve_transaction_or_exit(ctx, db, transaction)

    try:
        service.settle_transaction(transaction_id)
        click.echo(f"Settled transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction", metavar="TRANSACTION_ID")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction: str, yes: bool) -> None:
    """Delete a transaction.

    Deleting one leg of a transfer deletes both legs.

    Examples:
        finledger transaction delete 3f2a9c1b
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    transaction_id = resolve_transaction_or_exit(ctx, db, transaction)

    try:
        plan = service.plan_delete_transaction(transaction_id)
        if not confirm_plan(plan, yes):
            return
        deleted = service.delete_transaction(transaction_id, confirmed=True)
        click.echo(f"Deleted {len(deleted)} transaction(s)")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("bulk-delete")
@click.argument("transactions", metavar="TRANSACTION_ID...", nargs=-1, required=True)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def bulk_delete(ctx, transactions: tuple[str, ...], yes: bool) -> None:
    """Delete several transactions, including the other leg of transfers."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    ids = [resolve_transaction_or_exit(ctx, db, ref) for ref in transactions]

    try:
        plan = service.plan_bulk_delete(ids)
        if not confirm_plan(plan, yes):
            return
        deleted = service.bulk_delete(ids, confirmed=True)
        click.echo(f"Deleted {len(deleted)} transaction(s)")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("reassign")
@click.argument("transactions", metavar="TRANSACTION_ID...", nargs=-1, required=True)
@click.option("--category", required=True, help="Target category name or ID")
@click.pass_context
def reassign_category(ctx, transactions: tuple[str, ...], category: str) -> None:
    """Move several transactions to another category.

    Transfers, opening balances and card payments should not be selected.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    ids = [resolve_transaction_or_exit(ctx, db, ref) for ref in transactions]
    category_id = resolve_category_or_exit(ctx, db, category)

    try:
        count = service.bulk_reassign_category(ids, category_id)
        click.echo(f"Reassigned {count} transaction(s)")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
