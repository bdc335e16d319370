"""Investment goal commands."""

import click

from finledger.cli.error_handling import confirm_plan, handle_domain_error
from finledger.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_goal_or_exit,
    short_id,
)
from finledger.domain.errors import DomainError, InsufficientFundsError
from finledger.domain.goal import GoalService
from finledger.utils.amount_parser import format_currency


@click.group()
def goal_group():
    """Manage investment goals."""
    pass


@goal_group.command("create")
@click.argument("name")
@click.option("--target", required=True, help="Target amount")
@click.option("--by", "target_date", required=True, help="Target date")
@click.pass_context
def create_goal(ctx, name: str, target: str, target_date: str):
    """Create a goal with its own investment category.

    Examples:
        finledger goal create "Emergency fund" --target 10000 --by 2025-12-31
    """
    db = ctx.obj["db"]
    service = GoalService(db)
    amount = parse_amount_or_exit(ctx, target, "target")
    when = parse_date_or_exit(ctx, target_date, "target date")

    try:
        goal = service.create_goal(name, amount, when)
        click.echo(f"Created goal '{goal.name}' (ID: {goal.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("list")
@click.pass_context
def list_goals(ctx):
    """List goals with their progress."""
    db = ctx.obj["db"]
    service = GoalService(db)

    goals = service.list_goals()
    if not goals:
        click.echo("No goals found.")
        return

    click.echo("\nGoals:")
    click.echo("-" * 90)
    for goal in goals:
        progress = service.goal_progress(goal.id)
        click.echo(
            f"ID: {short_id(goal.id)} | {goal.name:20s} | "
            f"{format_currency(progress.current):>14} of {format_currency(progress.target):>14} "
            f"({progress.percent}%) | by {goal.target_date.isoformat()}"
        )


@goal_group.command("contribute")
@click.argument("goal", metavar="GOAL")
@click.option("--account", required=True, help="Account the money comes from")
@click.option("--amount", required=True, help="Amount to contribute")
@click.option("--date", help="Contribution date (default: today)")
@click.pass_context
def contribute(ctx, goal: str, account: str, amount: str, date: str | None):
    """Contribute money from an account to a goal."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, db, goal)
    account_id = resolve_account_or_exit(ctx, db, account)
    contribution = parse_amount_or_exit(ctx, amount)
    when = parse_date_or_exit(ctx, date) if date else None

    try:
        service.contribute(goal_id, account_id, contribution, when)
        progress = service.goal_progress(goal_id)
        click.echo(f"Contributed {format_currency(contribution)} ({progress.percent}% reached)")
    except InsufficientFundsError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(f"Missing: {format_currency(e.shortfall)}", err=True)
        ctx.exit(1)
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("update")
@click.argument("goal", metavar="GOAL")
@click.option("--name", help="New name")
@click.option("--target", help="New target amount")
@click.option("--by", "target_date", help="New target date")
@click.pass_context
def update_goal(ctx, goal: str, name: str | None, target: str | None, target_date: str | None):
    """Update a goal; renaming also renames its category."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, db, goal)

    try:
        updated = service.update_goal(
            goal_id,
            name=name,
            target_amount=parse_amount_or_exit(ctx, target, "target") if target else None,
            target_date=parse_date_or_exit(ctx, target_date, "target date") if target_date else None,
        )
        click.echo(f"Updated goal '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("delete")
@click.argument("goal", metavar="GOAL")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_goal(ctx, goal: str, yes: bool):
    """Delete a goal that has no contributions."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, db, goal)

    try:
        plan = service.plan_delete_goal(goal_id)
        if not confirm_plan(plan, yes):
            return
        service.delete_goal(goal_id, confirmed=True)
        click.echo("Deleted goal")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
