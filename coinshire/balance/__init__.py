"""Balance computation package."""

from coinshire.balance.engine import (
    FULL_SHARE_TOLERANCE,
    compute_balance,
    expense_delta,
    share_fraction,
)
from coinshire.balance.money import (
    describe_delta,
    describe_net,
    format_currency,
    round_cents,
)

__all__ = [
    "FULL_SHARE_TOLERANCE",
    "compute_balance",
    "describe_delta",
    "describe_net",
    "expense_delta",
    "format_currency",
    "round_cents",
    "share_fraction",
]
