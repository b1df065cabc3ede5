"""Currency helpers shared by the rule checks and the assembler."""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Returned when no line-backed flag contributes savings
ZERO_SAVINGS = "$0.00"


def to_cents(amount: Decimal) -> Decimal:
    """Quantize an amount to cents using banker's rounding."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_EVEN)


def format_currency(amount: Decimal) -> str:
    """Format as ``$1,234.56``."""
    return f"${to_cents(amount):,.2f}"


def format_dollars(amount: Decimal) -> str:
    """Format without cents when the amount is whole (``$6,000`` / ``$160.50``)."""
    cents = to_cents(amount)
    if cents == cents.to_integral_value():
        return f"${cents:,.0f}"
    return f"${cents:,.2f}"


def format_savings(amount: Decimal | None) -> str:
    """Render a savings estimate as an upper bound, never an exact promise."""
    if amount is None or to_cents(amount) <= ZERO:
        return ZERO_SAVINGS
    return f"up to {format_currency(amount)}"


def sum_amounts(amounts) -> Decimal:
    """Sum the known amounts, ignoring None."""
    total = ZERO
    for amount in amounts:
        if amount is not None:
            total += amount
    return to_cents(total)
