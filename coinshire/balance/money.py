"""
Money helpers: cent rounding, currency formatting and the short labels
the UI shows next to balances.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

from coinshire.models.expense import Expense

CENT = Decimal("0.01")

# Enough digits to quantize the largest finite float (about 1.8e308) to cents
MIN_PRECISION = 400

Number = Union[Decimal, float, int]


def round_cents(value: Number) -> Decimal:
    """
    Round to whole cents, half away from zero.

    Floats are rounded from their shortest decimal representation, so
    0.125 becomes 0.13 and -0.005 becomes -0.01. Negative zero comes
    back as plain 0.00.

    Infinities and NaN (an overflowed float sum) are returned unrounded.
    """
    if not isinstance(value, Decimal):
        value = Decimal(repr(float(value)))
    if not value.is_finite():
        return value

    with localcontext() as ctx:
        ctx.prec = max(MIN_PRECISION, value.adjusted() + 3)
        rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        return Decimal("0.00")
    return rounded


def format_currency(amount: Number, symbol: str = "$") -> str:
    """Format an amount as e.g. '$1,234.50' or '-$12.00'."""
    cents = round_cents(amount)
    if cents.is_nan():
        return f"{symbol}NaN"
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{cents.copy_abs():,.2f}"


def describe_net(net: Number, symbol: str = "$") -> str:
    """Banner text for a viewer's overall balance."""
    cents = round_cents(net)
    if cents.is_nan():
        return "Balance unavailable"
    if cents > 0:
        return f"You are owed {format_currency(cents.copy_abs(), symbol)}"
    if cents < 0:
        return f"You owe {format_currency(cents.copy_abs(), symbol)}"
    return "All settled up!"


def describe_delta(
    delta: Number,
    expense: Expense,
    viewer_id: str,
    symbol: str = "$",
) -> str:
    """How a single expense affects the viewer, in a few words."""
    cents = round_cents(delta)
    if cents.is_nan():
        return "amount unavailable"
    if cents > 0:
        return f"you lent {format_currency(cents.copy_abs(), symbol)}"
    if cents < 0:
        return f"you owe {format_currency(cents.copy_abs(), symbol)}"
    if expense.paid_by == viewer_id:
        return "settled (you paid your share)"
    if viewer_id in expense.participants:
        return "no balance impact"
    return "not involved"
