"""Demo expenses inserted into empty storage when seed_demo_data is on."""

from datetime import date
from decimal import Decimal

from coinshire.models.expense import Expense


def demo_expenses(user1_id: str = "u1", user2_id: str = "u2") -> list[Expense]:
    """A handful of everyday expenses covering equal and uneven splits."""
    both = [user1_id, user2_id]
    return [
        Expense(
            id="e1",
            description="Dinner at Bella Italia",
            amount=Decimal("96.00"),
            date=date(2025, 12, 1),
            paid_by=user1_id,
            participants=both,
        ),
        Expense(
            id="e2",
            description="Cab from airport",
            amount=Decimal("42.50"),
            date=date(2025, 12, 2),
            paid_by=user2_id,
            participants=both,
            shares={user2_id: 0.7, user1_id: 0.3},
        ),
        Expense(
            id="e3",
            description="Groceries for weekend",
            amount=Decimal("78.99"),
            date=date(2025, 12, 3),
            paid_by=user2_id,
            participants=both,
        ),
        Expense(
            id="e4",
            description="Coffee run",
            amount=Decimal("12.00"),
            date=date(2025, 12, 4),
            paid_by=user1_id,
            participants=both,
            shares={user1_id: 0.6, user2_id: 0.4},
        ),
    ]
