"""Recurring transaction commands."""

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.cli.resolution import parse_date_or_exit, resolve_transaction_or_exit, short_id
from finledger.domain.errors import DomainError
from finledger.domain.recurrence import RecurrenceService
from finledger.utils.amount_parser import format_currency


@click.group()
def recurring_group():
    """Manage recurring transactions."""
    pass


@recurring_group.command("list")
@click.pass_context
def list_recurring(ctx):
    """List recurring transaction templates."""
    db = ctx.obj["db"]
    service = RecurrenceService(db)

    templates = service.list_templates()
    if not templates:
        click.echo("No recurring transactions.")
        return
    for txn in templates:
        click.echo(
            f"{short_id(txn.id):<9} {txn.recurrence_rule.value:<8} since {txn.date.isoformat()} "
            f"{format_currency(txn.amount):>14}  {txn.description}"
        )


@recurring_group.command("run")
@click.option("--until", help="Generate occurrences up to this date (default: today)")
@click.pass_context
def run_recurring(ctx, until: str | None):
    """Generate missing occurrences of recurring transactions now."""
    db = ctx.obj["db"]
    service = RecurrenceService(db)
    today = parse_date_or_exit(ctx, until) if until else None

    generated = service.run(today)
    click.echo(f"Generated {len(generated)} transaction(s)")


@recurring_group.command("stop")
@click.argument("transaction", metavar="TRANSACTION_ID")
@click.pass_context
def stop_recurring(ctx, transaction: str):
    """Stop a recurring series; existing occurrences are kept."""
    db = ctx.obj["db"]
    service = RecurrenceService(db)
    transaction_id = resolve_transaction_or_exit(ctx, db, transaction)

    try:
        service.stop_recurrence(transaction_id)
        click.echo(f"Stopped recurring transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register recurring commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
