"""Validation package."""

from coinshire.validation.validator import ExpenseValidator, InvalidExpenseError

__all__ = ["ExpenseValidator", "InvalidExpenseError"]
