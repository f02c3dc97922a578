"""
Data Models Package

This package contains all Pydantic models used in Coinshire.
All data flowing through the system must conform to these schemas.
"""

from coinshire.models.expense import (
    Balance,
    Expense,
    ExpenseCreate,
    Money,
    User,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "Balance",
    "Expense",
    "ExpenseCreate",
    "Money",
    "User",
    "ValidationIssue",
    "ValidationResult",
]
