"""Tests for the storage backends (no real Google API calls)."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from coinshire.models.expense import Expense, User
from coinshire.services.storage import (
    DuplicateError,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
)
from coinshire.services.storage.google_sheets import (
    EXPENSE_COLUMNS,
    USER_COLUMNS,
    expense_to_row,
    row_to_expense,
)


def make_expense(expense_id, day=1, amount="10.00", shares=None):
    return Expense(
        id=expense_id,
        description=f"Expense {expense_id}",
        amount=Decimal(amount),
        date=date(2025, 12, day),
        paid_by="u1",
        participants=["u1", "u2"],
        shares=shares,
    )


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage layer."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(value) for value in values])

    def col_values(self, col):
        return [row[col - 1] for row in self.rows if len(row) >= col]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient with two fake worksheets."""

    def __init__(self):
        self.expenses = FakeWorksheet(EXPENSE_COLUMNS)
        self.users = FakeWorksheet(USER_COLUMNS)

    def get_expenses_sheet(self):
        return self.expenses

    def get_users_sheet(self):
        return self.users


@pytest.fixture(params=["memory", "google_sheets"])
def storage(request):
    if request.param == "memory":
        return InMemoryExpenseStorage()
    return GoogleSheetsExpenseStorage(FakeSheetsClient())


class TestExpenseStorage:
    """Behaviour shared by every backend."""

    def test_seed_users_is_idempotent(self, storage):
        """Test that seeding twice keeps the first names."""
        asyncio.run(storage.seed_users([User(id="u2", name="Alex"), User(id="u1", name="You")]))
        asyncio.run(storage.seed_users([User(id="u1", name="Renamed")]))

        users = asyncio.run(storage.list_users())
        assert [(u.id, u.name) for u in users] == [("u1", "You"), ("u2", "Alex")]

    def test_save_and_get(self, storage):
        """Test that a saved expense reads back unchanged."""
        expense = make_expense("e1", shares={"u1": 0.6, "u2": 0.4})
        assert asyncio.run(storage.save_expense(expense)) is True

        loaded = asyncio.run(storage.get_expense_by_id("e1"))
        assert loaded == expense
        assert asyncio.run(storage.get_expense_by_id("missing")) is None

    def test_duplicate_id_rejected(self, storage):
        """Test that ids are unique."""
        asyncio.run(storage.save_expense(make_expense("e1")))
        with pytest.raises(DuplicateError):
            asyncio.run(storage.save_expense(make_expense("e1", amount="99.00")))

    def test_list_newest_first(self, storage):
        """Test ordering by date, then id, descending."""
        for expense_id, day in [("e1", 1), ("e3", 3), ("e2", 3), ("e4", 2)]:
            asyncio.run(storage.save_expense(make_expense(expense_id, day=day)))

        expenses = asyncio.run(storage.list_expenses())
        assert [e.id for e in expenses] == ["e3", "e2", "e4", "e1"]

    def test_pagination(self, storage):
        """Test limit and offset, including out-of-range offsets."""
        for day in range(1, 6):
            asyncio.run(storage.save_expense(make_expense(f"e{day}", day=day)))

        page = asyncio.run(storage.list_expenses(limit=2, offset=1))
        assert [e.id for e in page] == ["e4", "e3"]

        assert asyncio.run(storage.list_expenses(limit=2, offset=10)) == []
        assert len(asyncio.run(storage.list_expenses(offset=-3))) == 5

    def test_delete(self, storage):
        """Test that delete reports whether anything was removed."""
        asyncio.run(storage.save_expense(make_expense("e1")))
        asyncio.run(storage.save_expense(make_expense("e2", day=2)))

        assert asyncio.run(storage.delete_expense("e1")) is True
        assert asyncio.run(storage.delete_expense("e1")) is False
        assert [e.id for e in asyncio.run(storage.list_expenses())] == ["e2"]


class TestGoogleSheetsRows:
    """Tests for the spreadsheet row format."""

    def test_row_layout(self):
        """Test the column order of an expense row."""
        row = expense_to_row(make_expense("e1", shares={"u1": 0.6, "u2": 0.4}))
        assert row == [
            "e1",
            "Expense e1",
            "10.00",
            "2025-12-01",
            "u1",
            '["u1", "u2"]',
            '{"u1": 0.6, "u2": 0.4}',
        ]

    def test_row_without_shares(self):
        """Test that missing shares are stored as an empty cell."""
        expense = make_expense("e1")
        row = expense_to_row(expense)
        assert row[6] == ""
        assert row_to_expense(row).shares is None

    def test_short_row_defaults_missing_columns(self):
        """Test that trailing empty columns get defaults."""
        expense = row_to_expense(["e1", "Cab", "42.50", "2025-12-02", "u2"])
        assert expense.participants == []
        assert expense.shares is None
        assert expense.amount == Decimal("42.50")

    def test_malformed_rows_are_skipped(self):
        """Test that unreadable rows are left out of listings."""
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client)
        asyncio.run(storage.save_expense(make_expense("e1")))
        client.expenses.rows.append(["e2", "Broken", "not-a-number", "2025-12-02", "u1", "[]", ""])
        client.expenses.rows.append(["", "", "", "", "", "", ""])

        expenses = asyncio.run(storage.list_expenses())
        assert [e.id for e in expenses] == ["e1"]

    def test_users_sheet_ignores_incomplete_rows(self):
        """Test that user rows without a name are ignored."""
        client = FakeSheetsClient()
        client.users.rows.append(["u1", "You"])
        client.users.rows.append(["u3"])
        storage = GoogleSheetsExpenseStorage(client)

        users = asyncio.run(storage.list_users())
        assert [u.id for u in users] == ["u1"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
