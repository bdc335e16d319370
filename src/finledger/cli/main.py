"""Main CLI entry point."""

import click

from finledger.database.factories import create_sqlite_database
from finledger.domain.category import CategoryService
from finledger.domain.recurrence import RecurrenceService
from finledger.logging_config import configure_logging

# Import and register all commands at module level
from finledger.cli.commands import (
    account,
    card,
    category,
    goal,
    init_categories,
    recurring,
    report,
    transaction,
    transfer,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINLEDGER_DB_PATH environment variable)",
    envvar="FINLEDGER_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug information to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Finledger - Personal finance ledger.

    Track bank accounts, transfers, credit card bills with installments,
    recurring transactions and investment goals.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose=verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        CategoryService(db).ensure_system_categories()
        RecurrenceService(db).run_daily()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)
transaction.register_commands(cli)
transfer.register_commands(cli)
card.register_commands(cli)
goal.register_commands(cli)
recurring.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
