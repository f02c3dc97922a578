"""
In-Memory Storage Implementation

Keeps users and expenses in plain dicts. Used for tests, demos and as
the fallback when no persistent backend is configured. Nothing survives
a restart.
"""

from typing import Optional

from coinshire.models.expense import Expense, User
from coinshire.services.storage.interface import (
    DuplicateError,
    ExpenseStorageInterface,
    paginate,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Dict-backed expense storage."""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._expenses: dict[str, Expense] = {}

    async def seed_users(self, users: list[User]) -> None:
        for user in users:
            self._users.setdefault(user.id, user)

    async def list_users(self) -> list[User]:
        return [self._users[user_id] for user_id in sorted(self._users)]

    async def save_expense(self, expense: Expense) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense
        return True

    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        return self._expenses.get(expense_id)

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        return paginate(list(self._expenses.values()), limit, offset)
