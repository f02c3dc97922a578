"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing and demos
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Expenses are append-only with hard deletes; users are seeded once.
"""

from abc import ABC, abstractmethod
from typing import Optional

from coinshire.models.expense import Expense, User


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense and user storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def seed_users(self, users: list[User]) -> None:
        """
        Make sure the given users exist.

        Users that are already stored are left untouched.
        """
        pass

    @abstractmethod
    async def list_users(self) -> list[User]:
        """
        List all users.

        Returns:
            Users ordered by id
        """
        pass

    @abstractmethod
    async def save_expense(self, expense: Expense) -> bool:
        """
        Append an expense to storage.

        Args:
            expense: The expense to save

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If an expense with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        """
        Retrieve an expense by its ID.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Hard-delete an expense by ID.

        Returns:
            True if an expense was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        """
        List expenses, newest first.

        Ordering is by date descending, then id descending.

        Args:
            limit: Maximum number of results (None for the whole history)
            offset: Number of results to skip

        Returns:
            List of expenses
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def paginate(expenses: list[Expense], limit: Optional[int], offset: int) -> list[Expense]:
    """Sort newest first and cut out one page."""
    ordered = sorted(expenses, key=lambda e: (e.date, e.id), reverse=True)
    offset = max(0, offset)
    if limit is None:
        return ordered[offset:]
    return ordered[offset:offset + max(0, limit)]
