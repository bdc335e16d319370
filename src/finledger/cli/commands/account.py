"""Account management commands."""

import click

from finledger.cli.error_handling import confirm_plan, handle_domain_error
from finledger.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    short_id,
)
from finledger.domain.account import AccountService
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import format_currency


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--opening-balance", default="0", help="Balance on the opening date (default: 0)")
@click.option("--opening-date", help="Opening date (YYYY-MM-DD, DD/MM/YYYY or 'today'; default: today)")
@click.option("--inactive", is_flag=True, help="Create the account as inactive")
@click.pass_context
def create_account(ctx, name: str, opening_balance: str, opening_date: str | None, inactive: bool):
    """Create a new account with its opening balance.

    Examples:
        finledger account create "Checking" --opening-balance 1000.00
        finledger account create "Savings" --opening-balance "1.234,56" --opening-date 01/01/2024
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    amount = parse_amount_or_exit(ctx, opening_balance, "opening balance")
    when = parse_date_or_exit(ctx, opening_date, "opening date") if opening_date else None

    try:
        account = service.create_account(
            name=name, opening_balance=amount, opening_date=when, active=not inactive
        )
        click.echo(f"Created account '{account.name}' (ID: {account.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts with their current balance."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(active=None if show_all else True)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        status = "" if acc.active else " (inactive)"
        balance = format_currency(service.get_balance(acc.id))
        click.echo(f"ID: {short_id(acc.id)} | {acc.name + status:30s} | {balance:>18s}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--active/--inactive", default=None, help="Activate or deactivate the account")
@click.option("--opening-balance", help="New opening balance")
@click.option("--opening-date", help="New opening date")
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    active: bool | None,
    opening_balance: str | None,
    opening_date: str | None,
) -> None:
    """Update an account.

    ACCOUNT can be an account name or ID. The opening balance and date can
    only change while the account has no other transactions.

    Examples:
        finledger account update "Checking" --name "Main Checking"
        finledger account update "Savings" --opening-balance 1500.00
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, db, account)

    amount = (
        parse_amount_or_exit(ctx, opening_balance, "opening balance")
        if opening_balance is not None
        else None
    )
    when = parse_date_or_exit(ctx, opening_date, "opening date") if opening_date else None

    try:
        updated = service.update_account(
            account_id, name=name, active=active, opening_balance=amount, opening_date=when
        )
        click.echo(f"Updated account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted while its only transaction is the
    opening balance.

    Examples:
        finledger account delete "Checking"
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, db, account)

    try:
        plan = service.plan_delete_account(account_id)
        if not confirm_plan(plan, yes):
            return
        account_obj = service.require_account(account_id)
        service.delete_account(account_id, confirmed=True)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
