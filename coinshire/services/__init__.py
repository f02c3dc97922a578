"""Services package."""

from coinshire.services.storage import (
    DuplicateError,
    ExpenseStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "DuplicateError",
    "ExpenseStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "InMemoryExpenseStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
]
