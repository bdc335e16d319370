"""Report commands: balances, month summary, projection, net worth, cash flow and budgets."""

from datetime import date

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.cli.resolution import (
    parse_competency_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
)
from finledger.domain.account import AccountService
from finledger.domain.cashflow import CashFlowService
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import format_currency
from finledger.utils.date_parser import competency_of


def _month_or_current(ctx, month: str | None) -> str:
    if month is None:
        return competency_of(date.today())
    return parse_competency_or_exit(ctx, month)


@click.group()
def report_group():
    """Show balances and monthly reports."""
    pass


@report_group.command("balance")
@click.option("--account", help="Account name or ID (default: all active accounts)")
@click.option("--as-of", help="Balance at the end of this date (default: all settled)")
@click.pass_context
def balance(ctx, account: str | None, as_of: str | None):
    """Show settled account balances."""
    db = ctx.obj["db"]
    service = AccountService(db)
    as_of_date = parse_date_or_exit(ctx, as_of) if as_of else None

    if account:
        accounts = [service.require_account(resolve_account_or_exit(ctx, db, account))]
    else:
        accounts = service.list_accounts(active=True)

    total = 0
    for acc in accounts:
        amount = service.get_balance(acc.id, as_of_date)
        total += amount
        click.echo(f"{acc.name:30s} {format_currency(amount):>18}")
    if len(accounts) > 1:
        click.echo("-" * 49)
        click.echo(f"{'Total':30s} {format_currency(total):>18}")


@report_group.command("summary")
@click.option("--month", help="Month as YYYY-MM (default: current month)")
@click.option("--account", help="Account name or ID (default: all active accounts)")
@click.pass_context
def summary(ctx, month: str | None, account: str | None):
    """Show income and outflows of a month."""
    db = ctx.obj["db"]
    competency = _month_or_current(ctx, month)
    account_id = resolve_account_or_exit(ctx, db, account) if account else None

    result = CashFlowService(db).month_summary(competency, account_id=account_id)
    click.echo(f"\nSummary for {competency}:")
    click.echo("-" * 40)
    click.echo(f"{'Income':20s} {format_currency(result.income):>18}")
    click.echo(f"{'Expenses':20s} {format_currency(result.expenses):>18}")
    click.echo(f"{'Investments':20s} {format_currency(result.investments):>18}")
    click.echo(f"{'Card payments':20s} {format_currency(result.card_payments):>18}")
    click.echo(f"{'Card bill':20s} {format_currency(result.card_bill):>18}")
    click.echo(f"{'Total outflows':20s} {format_currency(result.outflows):>18}")
    click.echo("-" * 40)
    click.echo(f"{'Net':20s} {format_currency(result.net):>18}")


@report_group.command("cashflow")
@click.option("--month", help="Month as YYYY-MM (default: current month)")
@click.option("--installments", is_flag=True, help="Show card installments on their due day")
@click.pass_context
def cashflow(ctx, month: str | None, installments: bool):
    """Show the day-by-day cash flow of a month."""
    db = ctx.obj["db"]
    competency = _month_or_current(ctx, month)

    days = CashFlowService(db).daily_cash_flow(competency, include_installments=installments)
    header = f"{'Date':<11} {'In':>14} {'Out':>14} {'Payments':>14}"
    if installments:
        header += f" {'Card bill':>14}"
    click.echo(header + f" {'Balance':>16}")
    for day in days:
        line = (
            f"{day.date.isoformat():<11} {format_currency(day.inflows):>14} "
            f"{format_currency(day.outflows):>14} {format_currency(day.payments):>14}"
        )
        if installments:
            line += f" {format_currency(day.card_installments):>14}"
        click.echo(line + f" {format_currency(day.closing_balance):>16}")


@report_group.command("budget")
@click.option("--month", help="Month as YYYY-MM (default: current month)")
@click.pass_context
def budget(ctx, month: str | None):
    """Compare spending with category budgets."""
    db = ctx.obj["db"]
    competency = _month_or_current(ctx, month)

    usage = CashFlowService(db).budget_usage(competency)
    if not usage:
        click.echo("No category has a monthly budget.")
        return
    for item in usage:
        flag = "  OVER" if item.remaining < 0 else ""
        click.echo(
            f"{item.category_name:25s} {format_currency(item.spent):>14} of "
            f"{format_currency(item.budget):>14}{flag}"
        )


@report_group.command("projection")
@click.option("--month", help="Month as YYYY-MM (default: current month)")
@click.pass_context
def projection(ctx, month: str | None):
    """Show the expected balance at the end of a month."""
    db = ctx.obj["db"]
    competency = _month_or_current(ctx, month)

    result = CashFlowService(db).projected_balance(competency)
    click.echo(f"\nProjection for {competency}:")
    click.echo("-" * 40)
    click.echo(f"{'Starting balance':20s} {format_currency(result.starting_balance):>18}")
    click.echo(f"{'Inflows':20s} {format_currency(result.inflows):>18}")
    click.echo(f"{'Outflows':20s} {format_currency(result.outflows):>18}")
    click.echo(f"{'Card bill due':20s} {format_currency(result.card_bill_due):>18}")
    click.echo("-" * 40)
    click.echo(f"{'Projected balance':20s} {format_currency(result.projected_balance):>18}")


@report_group.command("net-worth")
@click.option("--months", type=int, default=12, show_default=True, help="Number of months")
@click.pass_context
def net_worth(ctx, months: int):
    """Show net worth at the end of each recent month."""
    db = ctx.obj["db"]
    try:
        history = CashFlowService(db).net_worth_history(months)
    except DomainError as e:
        handle_domain_error(ctx, e)
    for point in history:
        click.echo(f"{point.competency:10s} {format_currency(point.net_worth):>18}")


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
