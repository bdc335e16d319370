"""Amount parsing, formatting and splitting utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from finledger.domain.errors import ValidationError


CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a number to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "R$ 123,45"
    - "-123.45"
    - "1.234,56"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    The last of "." or "," present is taken as the decimal separator.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and whitespace
    amount_str = re.sub(r"(R\$|[$€£¥\s])", "", amount_str)

    if "," in amount_str and amount_str.rfind(",") > amount_str.rfind("."):
        amount_str = amount_str.replace(".", "").replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_currency(value: str) -> Decimal:
    """Parse a pt-BR formatted currency string ("R$ 1.234,56").

    Thousands separators are dots and the decimal separator is a comma.
    Unparseable input yields zero; this never raises.
    """
    if not isinstance(value, str) or not value.strip():
        return Decimal("0")

    cleaned = re.sub(r"[^0-9,\-]", "", value).replace(",", ".", 1)
    match = re.match(r"-?\d+(\.\d+)?", cleaned)
    if match is None:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")


def format_currency(value: Decimal) -> str:
    """Format a value as Brazilian reais, e.g. ``R$ 1.234,56``."""
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}"
    # Swap the separators of the en-US rendering
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {text}"


def split_into_installments(total: Decimal, n: int) -> list[Decimal]:
    """Split a total into ``n`` installments without losing cents.

    The first ``cents % n`` installments carry one extra cent, so the parts
    always add up to the rounded total and never differ by more than a cent.
    Negative totals are split by magnitude and the sign reapplied.

    Args:
        total: Amount to split
        n: Number of installments (at least 1)

    Returns:
        List of ``n`` Decimal amounts

    Raises:
        ValidationError: If ``n`` is smaller than 1
    """
    if n < 1:
        raise ValidationError("Installment count must be at least 1")

    cents = int(to_money(total) * 100)
    sign = -1 if cents < 0 else 1
    cents = abs(cents)

    base, remainder = divmod(cents, n)
    parts = [base + 1 if i < remainder else base for i in range(n)]
    return [(Decimal(sign * part) / 100).quantize(CENT) for part in parts]
