"""
Main Orchestrator for Coinshire

This module ties together storage, validation and the balance engine,
and defines the flows the HTTP API and the UI call into:
1. Expense creation (payload → validate → build → save)
2. Expense listing and deletion
3. Balance (full history → engine)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is saved without passing validation
- Balances are always computed from the WHOLE history, never a page
- The viewer is always an explicit argument
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import uuid4

import structlog

from coinshire.balance import compute_balance
from coinshire.config import get_settings
from coinshire.config.settings import AppSettings
from coinshire.data import demo_expenses
from coinshire.models.expense import Balance, Expense, ExpenseCreate, User
from coinshire.services.storage import (
    ExpenseStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    NotFoundError,
)
from coinshire.validation import ExpenseValidator, InvalidExpenseError

logger = structlog.get_logger(__name__)

SHARE_PRECISION = Decimal("0.001")


def _pct_to_fraction(pct: float) -> float:
    """Percent to a fraction rounded half-up to 3 decimals (60 -> 0.6)."""
    fraction = Decimal(repr(float(pct))) / 100
    return float(fraction.quantize(SHARE_PRECISION, rounding=ROUND_HALF_UP))


class ExpenseFlow:
    """
    Orchestrates everything a client can do with expenses.

    Flow for creation:
    1. Validate the payload against the known users
    2. Split it between the payer and the other user
    3. Persist it

    Balances are derived on demand; nothing about them is stored.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings().app
        self._validator = validator or ExpenseValidator(self._settings)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    @property
    def storage(self) -> ExpenseStorageInterface:
        return self._storage

    async def initialize(self) -> None:
        """
        Prepare storage for use.

        Seeds the two configured users, and the demo expenses when
        enabled and storage is still empty.
        """
        users = [User(id=user_id, name=name) for user_id, name in self._settings.users]
        await self._storage.seed_users(users)

        if self._settings.seed_demo_data:
            existing = await self._storage.list_expenses(limit=1)
            if not existing:
                for expense in demo_expenses(self._settings.user1_id, self._settings.user2_id):
                    await self._storage.save_expense(expense)
                logger.info("demo_data_seeded")

    async def list_users(self) -> list[User]:
        return await self._storage.list_users()

    async def list_expenses(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        """
        One page of expenses, newest first.

        `limit` defaults to the configured page size and is capped at
        the configured maximum.
        """
        if limit is None:
            limit = self._settings.page_size
        limit = max(1, min(limit, self._settings.max_page_size))
        return await self._storage.list_expenses(limit=limit, offset=max(0, offset))

    async def create_expense(
        self,
        payload: ExpenseCreate,
        today: Optional[date] = None,
    ) -> Expense:
        """
        Validate a payload and save it as a new expense.

        Both users participate; the payer takes `payer_share_pct` percent
        and the other user the rest.

        Raises:
            InvalidExpenseError: If the payload fails validation
        """
        users = await self._storage.list_users()
        result = self._validator.validate(payload, users)
        if not result.is_valid:
            logger.warning(
                "expense_rejected",
                issues=[issue.message for issue in result.issues],
            )
            raise InvalidExpenseError(result)

        other_id = next(user.id for user in users if user.id != payload.paid_by)
        expense = self.build_expense(payload, other_id, today=today)

        await self._storage.save_expense(expense)

        logger.info(
            "expense_created",
            expense_id=expense.id,
            amount=str(expense.amount),
            paid_by=expense.paid_by,
            warnings=result.warnings,
        )
        return expense

    @staticmethod
    def build_expense(
        payload: ExpenseCreate,
        other_id: str,
        today: Optional[date] = None,
        expense_id: Optional[str] = None,
    ) -> Expense:
        """
        Build the Expense a payload describes, without validating or saving it.

        The payer takes `payer_share_pct` percent and `other_id` the rest.
        The UI uses this to preview a split with the real balance engine.
        """
        payer_id = payload.paid_by
        return Expense(
            id=expense_id or f"e_{uuid4().hex}",
            description=payload.description.strip(),
            amount=Decimal(repr(float(payload.total))),
            date=today or date.today(),
            paid_by=payer_id,
            participants=[payer_id, other_id],
            shares={
                payer_id: _pct_to_fraction(payload.payer_share_pct),
                other_id: _pct_to_fraction(100 - payload.payer_share_pct),
            },
        )

    async def delete_expense(self, expense_id: str) -> None:
        """
        Hard-delete an expense.

        Raises:
            NotFoundError: If no expense has this id
        """
        deleted = await self._storage.delete_expense(expense_id)
        if not deleted:
            raise NotFoundError(f"Expense not found: {expense_id}")
        logger.info("expense_deleted", expense_id=expense_id)

    async def get_balance(self, user_id: str) -> Balance:
        """Balance for `user_id` over the entire expense history."""
        expenses = await self._storage.list_expenses()
        balance = compute_balance(user_id, expenses)
        logger.debug(
            "balance_computed",
            user_id=user_id,
            expense_count=len(expenses),
            net=str(balance.net),
        )
        return balance

    def default_share_pct(self, viewer_id: str) -> int:
        """The share a viewer takes by default when adding an expense."""
        if viewer_id == self._settings.user1_id:
            return self._settings.user1_default_share_pct
        return 100 - self._settings.user1_default_share_pct

    @staticmethod
    def payer_share_pct_for(viewer_id: str, paid_by: str, viewer_share_pct: float) -> float:
        """Turn the viewer's own share into the payer's share."""
        if paid_by == viewer_id:
            return viewer_share_pct
        return 100 - viewer_share_pct


def create_app_components(
    backend: Optional[str] = None,
) -> tuple[ExpenseFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        backend: 'memory' or 'google_sheets'. Defaults to the configured
                 storage backend. If Google Sheets can't be configured we
                 fall back to in-memory storage.

    Returns:
        (expense_flow, sheets_client)
    """
    settings = get_settings().app
    backend = backend or settings.storage_backend

    sheets_client = None
    storage: ExpenseStorageInterface

    if backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsExpenseStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_fallback", backend=backend, error=str(e))
            sheets_client = None
            storage = InMemoryExpenseStorage()
    else:
        storage = InMemoryExpenseStorage()

    return ExpenseFlow(storage, settings=settings), sheets_client
