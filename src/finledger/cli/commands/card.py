"""Credit card commands."""

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.cli.resolution import (
    parse_amount_or_exit,
    parse_competency_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_card_or_exit,
    resolve_category_or_exit,
    resolve_purchase_or_exit,
    short_id,
)
from finledger.domain.billing import CardService
from finledger.domain.entities import CardBrand
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import format_currency

BRAND_CHOICES = click.Choice([brand.value for brand in CardBrand], case_sensitive=False)


@click.group()
def card_group():
    """Manage credit cards, purchases and bills."""
    pass


@card_group.command("create")
@click.argument("nickname")
@click.option("--closing-day", type=int, required=True, help="Day of month the bill closes")
@click.option("--due-day", type=int, required=True, help="Day of month the bill is due")
@click.option("--limit", "credit_limit", help="Credit limit")
@click.option("--account", help="Default account used to pay the bill")
@click.option("--brand", type=BRAND_CHOICES, default="other", help="Card brand")
@click.pass_context
def create_card(
    ctx,
    nickname: str,
    closing_day: int,
    due_day: int,
    credit_limit: str | None,
    account: str | None,
    brand: str,
):
    """Add a credit card.

    Examples:
        finledger card create "Visa Gold" --closing-day 20 --due-day 28 --limit 5000
    """
    db = ctx.obj["db"]
    service = CardService(db)
    limit = parse_amount_or_exit(ctx, credit_limit, "limit") if credit_limit else None
    account_id = resolve_account_or_exit(ctx, db, account) if account else None

    try:
        card = service.create_card(
            nickname,
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=limit,
            default_account_id=account_id,
            brand=CardBrand(brand.lower()),
        )
        click.echo(f"Created card '{card.nickname}' (ID: {card.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("list")
@click.pass_context
def list_cards(ctx):
    """List cards with their available limit."""
    db = ctx.obj["db"]
    service = CardService(db)

    cards = service.list_cards()
    if not cards:
        click.echo("No cards found.")
        return

    click.echo("\nCards:")
    click.echo("-" * 80)
    for card in cards:
        available = service.available_limit(card.id)
        limit_str = "no limit" if available is None else f"available {format_currency(available)}"
        click.echo(
            f"ID: {short_id(card.id)} | {card.nickname:20s} | closes {card.closing_day:2d}, "
            f"due {card.due_day:2d} | {limit_str}"
        )


@card_group.command("update")
@click.argument("card", metavar="CARD")
@click.option("--nickname", help="New nickname")
@click.option("--closing-day", type=int, help="New closing day")
@click.option("--due-day", type=int, help="New due day")
@click.option("--limit", "credit_limit", help="New credit limit")
@click.option("--account", help="New default account")
@click.option("--brand", type=BRAND_CHOICES, help="New brand")
@click.pass_context
def update_card(
    ctx,
    card: str,
    nickname: str | None,
    closing_day: int | None,
    due_day: int | None,
    credit_limit: str | None,
    account: str | None,
    brand: str | None,
):
    """Update a card. CARD can be a nickname or ID."""
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)
    limit = parse_amount_or_exit(ctx, credit_limit, "limit") if credit_limit else None
    account_id = resolve_account_or_exit(ctx, db, account) if account else None

    try:
        updated = service.update_card(
            card_id,
            nickname=nickname,
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=limit,
            default_account_id=account_id,
            brand=CardBrand(brand.lower()) if brand else None,
        )
        click.echo(f"Updated card '{updated.nickname}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("delete")
@click.argument("card", metavar="CARD")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_card(ctx, card: str, yes: bool):
    """Delete a card that has no purchases."""
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)
    nickname = service.require_card(card_id).nickname

    if not yes and not click.confirm(f"Are you sure you want to delete card '{nickname}'?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_card(card_id)
        click.echo(f"Deleted card '{nickname}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("buy")
@click.argument("card", metavar="CARD")
@click.option("--date", default="today", help="Purchase date (default: today)")
@click.option("--amount", required=True, help="Total amount")
@click.option("--category", required=True, help="Category name or ID")
@click.option("--installments", type=int, default=1, help="Number of installments (default: 1)")
@click.option("--description", help="Description")
@click.option("--reversal", is_flag=True, help="Refund credited to the card")
@click.pass_context
def add_purchase(
    ctx,
    card: str,
    date: str,
    amount: str,
    category: str,
    installments: int,
    description: str | None,
    reversal: bool,
):
    """Record a card purchase split into installments.

    Examples:
        finledger card buy "Visa Gold" --amount 300 --installments 3 --category Food
    """
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)
    category_id = resolve_category_or_exit(ctx, db, category)
    purchase_date = parse_date_or_exit(ctx, date)
    total = parse_amount_or_exit(ctx, amount)

    try:
        purchase = service.create_purchase(
            card_id,
            purchase_date=purchase_date,
            total_amount=total,
            category_id=category_id,
            installment_count=installments,
            description=description,
            is_reversal=reversal,
        )
        click.echo(f"Recorded purchase {purchase.id}")
        for inst in db.list_installments(purchase_id=purchase.id):
            click.echo(
                f"  {inst.installment_number}/{purchase.installment_count} "
                f"{inst.billing_competency}  {format_currency(inst.installment_amount)}"
            )
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("purchases")
@click.argument("card", metavar="CARD")
@click.pass_context
def list_purchases(ctx, card: str):
    """List the purchases of a card."""
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)

    purchases = service.list_purchases(card_id=card_id)
    if not purchases:
        click.echo("No purchases found.")
        return
    for purchase in purchases:
        total = -purchase.total_amount if purchase.is_reversal else purchase.total_amount
        click.echo(
            f"{short_id(purchase.id):<9} {purchase.purchase_date.isoformat():<11} "
            f"{format_currency(total):>16} {purchase.installment_count:>3}x  {purchase.description}"
        )


@card_group.command("update-purchase")
@click.argument("purchase", metavar="PURCHASE_ID")
@click.option("--card", help="Move to another card")
@click.option("--date", help="New purchase date")
@click.option("--amount", help="New total amount")
@click.option("--category", help="New category")
@click.option("--installments", type=int, help="New number of installments")
@click.option("--description", help="New description")
@click.pass_context
def update_purchase(
    ctx,
    purchase: str,
    card: str | None,
    date: str | None,
    amount: str | None,
    category: str | None,
    installments: int | None,
    description: str | None,
):
    """Update a purchase; its installments are regenerated."""
    db = ctx.obj["db"]
    service = CardService(db)
    purchase_id = resolve_purchase_or_exit(ctx, db, purchase)

    try:
        service.update_purchase(
            purchase_id,
            card_id=resolve_card_or_exit(ctx, db, card) if card else None,
            purchase_date=parse_date_or_exit(ctx, date) if date else None,
            total_amount=parse_amount_or_exit(ctx, amount) if amount else None,
            category_id=resolve_category_or_exit(ctx, db, category) if category else None,
            installment_count=installments,
            description=description,
        )
        click.echo(f"Updated purchase {purchase_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("delete-purchase")
@click.argument("purchase", metavar="PURCHASE_ID")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_purchase(ctx, purchase: str, yes: bool):
    """Delete a purchase and all of its installments."""
    db = ctx.obj["db"]
    service = CardService(db)
    purchase_id = resolve_purchase_or_exit(ctx, db, purchase)

    if not yes and not click.confirm(
        "Are you sure you want to delete this purchase? All of its installments will be removed."
    ):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_purchase(purchase_id)
        click.echo(f"Deleted purchase {purchase_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("bill")
@click.argument("card", metavar="CARD")
@click.argument("month", metavar="YYYY-MM", required=False)
@click.pass_context
def show_bill(ctx, card: str, month: str | None):
    """Show one billing cycle, or every cycle when MONTH is omitted."""
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)

    if month is None:
        cycles = service.list_cycles(card_id)
        if not cycles:
            click.echo("No bills found.")
            return
        for cycle in cycles:
            click.echo(
                f"{cycle.competency}  total {format_currency(cycle.total):>14}  "
                f"paid {format_currency(cycle.paid):>14}  "
                f"remaining {format_currency(cycle.remaining):>14}  {cycle.status.value}"
            )
        return

    competency = parse_competency_or_exit(ctx, month)
    purchases = {p.id: p for p in service.list_purchases(card_id=card_id)}
    for inst in service.list_installments(card_id=card_id, competency=competency):
        purchase = purchases[inst.purchase_id]
        click.echo(
            f"  {purchase.purchase_date.isoformat()}  {purchase.description[:30]:<30} "
            f"{inst.installment_number}/{purchase.installment_count}  "
            f"{format_currency(inst.installment_amount):>14}"
        )
    summary = service.get_cycle_summary(card_id, competency)
    click.echo(f"Total:     {format_currency(summary.total)}")
    click.echo(f"Paid:      {format_currency(summary.paid)}")
    click.echo(f"Remaining: {format_currency(summary.remaining)}")
    click.echo(f"Status:    {summary.status.value}")


@card_group.command("pay")
@click.argument("card", metavar="CARD")
@click.argument("month", metavar="YYYY-MM")
@click.option("--amount", required=True, help="Amount to pay")
@click.option("--account", help="Paying account (default: the card's default account)")
@click.option("--date", default="today", help="Payment date (default: today)")
@click.pass_context
def pay_bill(ctx, card: str, month: str, amount: str, account: str | None, date: str):
    """Pay all or part of a card bill.

    Examples:
        finledger card pay "Visa Gold" 2024-04 --amount 100 --account Checking
    """
    db = ctx.obj["db"]
    service = CardService(db)
    card_id = resolve_card_or_exit(ctx, db, card)
    competency = parse_competency_or_exit(ctx, month)
    payment_amount = parse_amount_or_exit(ctx, amount)
    payment_date = parse_date_or_exit(ctx, date)

    if account:
        account_id = resolve_account_or_exit(ctx, db, account)
    else:
        account_id = service.require_card(card_id).default_account_id
        if account_id is None:
            click.echo("Error: --account is required: the card has no default account", err=True)
            ctx.exit(1)

    try:
        service.pay_cycle(card_id, account_id, payment_amount, payment_date, competency)
        summary = service.get_cycle_summary(card_id, competency)
        click.echo(
            f"Payment recorded. Remaining: {format_currency(summary.remaining)} "
            f"({summary.status.value})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register card commands with main CLI."""
    cli.add_command(card_group, name="card")
