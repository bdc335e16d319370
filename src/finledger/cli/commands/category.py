"""Category management commands."""

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.cli.resolution import parse_amount_or_exit, resolve_category_or_exit, short_id
from finledger.domain.category import CategoryService
from finledger.domain.entities import CategoryKind
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import format_currency

KIND_CHOICES = click.Choice([kind.value for kind in CategoryKind], case_sensitive=False)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--kind", type=KIND_CHOICES, help="Only list categories of this kind")
@click.pass_context
def list_categories(ctx, kind: str | None):
    """List categories grouped by kind."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    categories = service.list_categories(kind=CategoryKind(kind.lower()) if kind else None)
    if not categories:
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    for group in CategoryKind:
        members = [cat for cat in categories if cat.kind == group]
        if not members:
            continue
        click.echo(f"\n{group.value.capitalize()}:")
        for cat in members:
            extras = []
            if cat.is_system:
                extras.append("system")
            if cat.monthly_budget is not None:
                extras.append(f"budget {format_currency(cat.monthly_budget)}")
            suffix = f" [{', '.join(extras)}]" if extras else ""
            click.echo(f"  {cat.name} (ID: {short_id(cat.id)}){suffix}")


@category_group.command("create")
@click.argument("name")
@click.option("--kind", type=KIND_CHOICES, default="expense", help="Category kind (default: expense)")
@click.option("--budget", help="Monthly budget")
@click.pass_context
def create_category(ctx, name: str, kind: str, budget: str | None):
    """Create a new category.

    Examples:
        finledger category create "Groceries" --budget 800
        finledger category create "Salary" --kind income
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    monthly_budget = parse_amount_or_exit(ctx, budget, "budget") if budget else None

    try:
        category = service.create_category(
            name=name, kind=CategoryKind(kind.lower()), monthly_budget=monthly_budget
        )
        click.echo(f"Created category '{category.name}' (ID: {category.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("update")
@click.argument("category", metavar="CATEGORY")
@click.option("--name", help="New name")
@click.option("--kind", type=KIND_CHOICES, help="New kind; existing transactions follow it")
@click.option("--budget", help="New monthly budget")
@click.option("--clear-budget", is_flag=True, help="Remove the monthly budget")
@click.pass_context
def update_category(
    ctx, category: str, name: str | None, kind: str | None, budget: str | None, clear_budget: bool
):
    """Update a category.

    CATEGORY can be a category name or ID. System categories cannot be
    changed.
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    category_id = resolve_category_or_exit(ctx, db, category)
    monthly_budget = parse_amount_or_exit(ctx, budget, "budget") if budget else None

    try:
        updated = service.update_category(
            category_id,
            name=name,
            kind=CategoryKind(kind.lower()) if kind else None,
            monthly_budget=monthly_budget,
            clear_budget=clear_budget,
        )
        click.echo(f"Updated category '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("delete")
@click.argument("category", metavar="CATEGORY")
@click.pass_context
def delete_category(ctx, category: str):
    """Delete a category that nothing references.

    CATEGORY can be a category name or ID.
    """
    db = ctx.obj["db"]
    service = CategoryService(db)
    category_id = resolve_category_or_exit(ctx, db, category)

    try:
        name = service.require_category(category_id).name
        service.delete_category(category_id)
        click.echo(f"Deleted category '{name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
