"""CLI error handling helpers."""

import click

from finledger.domain.entities import DeletePlan
from finledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def confirm_plan(plan: DeletePlan, yes: bool) -> bool:
    """Ask the user to confirm a planned operation unless ``--yes`` was given."""
    if not plan.requires_confirmation or yes:
        return True
    if click.confirm(plan.message):
        return True
    click.echo("Deletion cancelled.")
    return False
