"""Initialize default categories."""

import click

from finledger.domain.category import CategoryService
from finledger.domain.entities import CategoryKind
from finledger.domain.errors import DomainError


# Default categories per kind; the reserved Transfer categories are always
# seeded on startup and are not listed here.
INITIAL_CATEGORIES = [
    # Income
    ("Salary", CategoryKind.INCOME),
    ("Overtime", CategoryKind.INCOME),
    ("Year-end Bonus", CategoryKind.INCOME),
    ("Vacation Pay", CategoryKind.INCOME),
    ("Bonus", CategoryKind.INCOME),
    ("Rent Received", CategoryKind.INCOME),
    ("Owner's Draw", CategoryKind.INCOME),
    ("Profit Distribution", CategoryKind.INCOME),
    ("Investment Income", CategoryKind.INCOME),
    ("Other Income", CategoryKind.INCOME),
    # Expenses
    ("Tithes & Donations", CategoryKind.EXPENSE),
    ("Housing", CategoryKind.EXPENSE),
    ("Food", CategoryKind.EXPENSE),
    ("Transportation", CategoryKind.EXPENSE),
    ("Health", CategoryKind.EXPENSE),
    ("Education", CategoryKind.EXPENSE),
    ("Leisure & Entertainment", CategoryKind.EXPENSE),
    ("Debts & Obligations", CategoryKind.EXPENSE),
    ("Taxes & Fees", CategoryKind.EXPENSE),
    ("Personal Expenses", CategoryKind.EXPENSE),
    ("Gifts", CategoryKind.EXPENSE),
    ("Pets", CategoryKind.EXPENSE),
    ("Other Expenses", CategoryKind.EXPENSE),
    # Investments
    ("Vacation Fund", CategoryKind.INVESTMENT),
    ("New Car", CategoryKind.INVESTMENT),
    ("Home Renovation", CategoryKind.INVESTMENT),
    ("Emergency Fund", CategoryKind.INVESTMENT),
    # Refunds
    ("Refunds", CategoryKind.REVERSAL),
]


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Add missing defaults even if categories already exist")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize database with the default categories."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    # Check if user categories already exist
    existing = [cat for cat in service.list_categories() if not cat.is_system]
    if existing and not force:
        click.echo("Categories already exist. Use --force to add missing defaults.")
        return

    click.echo("Creating default categories...")
    service.ensure_system_categories()

    created = 0
    skipped = 0
    errors = 0
    for name, kind in INITIAL_CATEGORIES:
        if service.find_category(name, kind=kind) is not None:
            skipped += 1
            continue
        try:
            service.create_category(name=name, kind=kind)
            created += 1
        except DomainError as e:
            click.echo(f"Warning: Could not create category '{name}': {e}", err=True)
            errors += 1

    if errors == 0:
        click.echo(f"Successfully created {created} categories ({skipped} already present).")
    else:
        click.echo(f"Created {created} categories with {errors} errors.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
