"""
Balance Engine

Turns an expense history into one viewer's net balance plus the
contribution of every single expense.

DESIGN DECISION: This is the ONE place the balance rule lives. The HTTP
API, the orchestrator and the UI preview all call compute_balance();
nothing re-derives it. The module has no I/O, no configuration and no
state, so it behaves identically wherever it is imported.

Per expense, the first matching rule decides the viewer's delta:

1. Full share    - viewer's fraction is 1 (within 1e-9): -amount,
                   whoever paid and whether or not they participate
2. Paid + shared - amount minus the viewer's own share
3. Paid only     - the whole amount
4. Shared only   - minus the viewer's share
5. Neither       - 0

The engine never raises. Empty participant lists, shares that do not
sum to 1 and unknown user ids all fall through the rules above.
"""

from typing import Iterable

from coinshire.balance.money import round_cents
from coinshire.models.expense import Balance, Expense

FULL_SHARE_TOLERANCE = 1e-9


def share_fraction(expense: Expense, viewer_id: str) -> float:
    """
    The viewer's fraction of an expense.

    An explicit share wins. Otherwise participants split equally and
    non-participants hold nothing.
    """
    if expense.shares is not None and viewer_id in expense.shares:
        return float(expense.shares[viewer_id])
    if viewer_id in expense.participants:
        return 1 / max(1, len(expense.participants))
    return 0.0


def expense_delta(expense: Expense, viewer_id: str) -> float:
    """Unrounded effect of one expense on the viewer's balance."""
    amount = float(expense.amount)
    fraction = share_fraction(expense, viewer_id)
    is_payer = expense.paid_by == viewer_id
    is_participant = viewer_id in expense.participants

    if abs(fraction - 1) < FULL_SHARE_TOLERANCE:
        return -amount
    if is_payer and is_participant:
        return amount - amount * fraction
    if is_payer:
        return amount
    if is_participant:
        return -(amount * fraction)
    return 0.0


def compute_balance(viewer_id: str, expenses: Iterable[Expense]) -> Balance:
    """
    Compute the viewer's balance over a list of expenses.

    Pass the ENTIRE history, not a page of it. Each expense's delta is
    rounded on its own for `by_expense`; `net` sums the unrounded deltas
    and is rounded once at the end. Do not replace `net` with the sum of
    `by_expense`: the two can differ by a few cents.
    """
    net = 0.0
    by_expense = {}

    for expense in expenses:
        delta = expense_delta(expense, viewer_id)
        net += delta
        by_expense[expense.id] = round_cents(delta)

    return Balance(net=round_cents(net), by_expense=by_expense)
