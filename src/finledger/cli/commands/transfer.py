"""Transfer commands."""

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_transaction_or_exit,
)
from finledger.domain.errors import DomainError
from finledger.domain.transaction import TransactionService
from finledger.utils.amount_parser import format_currency


@click.group()
def transfer_group():
    """Move money between accounts."""
    pass


@transfer_group.command("create")
@click.option("--from", "source", required=True, help="Source account name or ID")
@click.option("--to", "destination", required=True, help="Destination account name or ID")
@click.option("--amount", required=True, help="Amount to transfer")
@click.option("--date", default="today", help="Transfer date (default: today)")
@click.option("--description", help="Description (default: 'Transfer')")
@click.pass_context
def create_transfer(
    ctx, source: str, destination: str, amount: str, date: str, description: str | None
):
    """Transfer money from one account to another.

    Examples:
        finledger transfer create --from Checking --to Savings --amount 50.00
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    source_id = resolve_account_or_exit(ctx, db, source)
    destination_id = resolve_account_or_exit(ctx, db, destination)
    transfer_amount = parse_amount_or_exit(ctx, amount)
    transfer_date = parse_date_or_exit(ctx, date)

    try:
        outflow, _ = service.create_transfer(
            source_id, destination_id, transfer_amount, transfer_date, description
        )
        click.echo(
            f"Transferred {format_currency(transfer_amount)} on {transfer_date.isoformat()} "
            f"(ID: {outflow.id})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("update")
@click.argument("transaction", metavar="TRANSACTION_ID")
@click.option("--from", "source", help="New source account name or ID")
@click.option("--to", "destination", help="New destination account name or ID")
@click.option("--amount", help="New amount")
@click.option("--date", help="New date")
@click.option("--description", help="New description")
@click.pass_context
def update_transfer(
    ctx,
    transaction: str,
    source: str | None,
    destination: str | None,
    amount: str | None,
    date: str | None,
    description: str | None,
):
    """Update both legs of a transfer.

    TRANSACTION_ID can be the ID of either leg.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    transaction_id = resolve_transaction_or_exit(ctx, db, transaction)
    source_id = resolve_account_or_exit(ctx, db, source) if source else None
    destination_id = resolve_account_or_exit(ctx, db, destination) if destination else None
    transfer_amount = parse_amount_or_exit(ctx, amount) if amount is not None else None
    transfer_date = parse_date_or_exit(ctx, date) if date else None

    try:
        service.update_transfer(
            transaction_id,
            source_account_id=source_id,
            destination_account_id=destination_id,
            amount=transfer_amount,
            date=transfer_date,
            description=description,
        )
        click.echo("Updated transfer")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
