"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Both people can look at the raw expense list directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (two people's expenses are fine)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we sort and paginate in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from coinshire.config import get_settings
from coinshire.config.settings import GoogleSheetsSettings
from coinshire.models.expense import Expense, User
from coinshire.services.storage.interface import (
    DuplicateError,
    ExpenseStorageInterface,
    StorageConnectionError,
    StorageError,
    paginate,
)

logger = structlog.get_logger(__name__)


# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "description",
    "amount",
    "date",
    "paid_by",
    "participants_json",
    "shares_json",
]

# Column mappings for Users sheet
USER_COLUMNS = [
    "id",
    "name",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000
        )

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS, rows=10
        )


def expense_to_row(expense: Expense) -> list:
    """Convert an Expense to a spreadsheet row."""
    return [
        expense.id,
        expense.description,
        str(expense.amount),
        expense.date.isoformat(),
        expense.paid_by,
        json.dumps(expense.participants),
        json.dumps(expense.shares) if expense.shares is not None else "",
    ]


def row_to_expense(row: list) -> Expense:
    """Convert a spreadsheet row to an Expense."""
    # Handle missing columns gracefully
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    shares_json = safe_get(6)

    return Expense(
        id=safe_get(0),
        description=safe_get(1),
        amount=Decimal(safe_get(2)),
        date=date.fromisoformat(safe_get(3)),
        paid_by=safe_get(4),
        participants=json.loads(safe_get(5, "[]")),
        shares=json.loads(shares_json) if shares_json else None,
    )


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense storage.

    Expenses are stored as rows in a worksheet with one expense per row.
    Participants and shares are JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def seed_users(self, users: list[User]) -> None:
        """Append any configured users missing from the Users sheet."""
        try:
            sheet = self._client.get_users_sheet()
            existing = {row[0] for row in sheet.get_all_values()[1:] if row and row[0]}
            for user in users:
                if user.id not in existing:
                    sheet.append_row([user.id, user.name], value_input_option="RAW")
                    existing.add(user.id)
        except Exception as e:
            raise StorageError(f"Failed to seed users: {e}") from e

    async def list_users(self) -> list[User]:
        try:
            sheet = self._client.get_users_sheet()
            users = [
                User(id=row[0], name=row[1])
                for row in sheet.get_all_values()[1:]
                if len(row) >= 2 and row[0] and row[1]
            ]
            return sorted(users, key=lambda u: u.id)
        except Exception as e:
            raise StorageError(f"Failed to list users: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def save_expense(self, expense: Expense) -> bool:
        """Append an expense to Google Sheets."""
        try:
            sheet = self._client.get_expenses_sheet()
            ids = sheet.col_values(1)[1:]
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}") from e

        if expense.id in ids:
            raise DuplicateError(f"Expense already exists: {expense.id}")

        try:
            sheet.append_row(expense_to_row(expense), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}") from e

    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == expense_id:
                    return row_to_expense(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}") from e

    async def delete_expense(self, expense_id: str) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
                if row and row[0] == expense_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}") from e

    async def list_expenses(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}") from e

        expenses = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                expenses.append(row_to_expense(row))
            except Exception as e:
                logger.warning("expense_row_skipped", expense_id=row[0], error=str(e))

        return paginate(expenses, limit, offset)
