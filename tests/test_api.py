"""Tests for the HTTP API (in-memory storage, no server)."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from coinshire.api import create_api
from coinshire.config.settings import AppSettings
from coinshire.models.expense import Expense
from coinshire.orchestrator import ExpenseFlow
from coinshire.services.storage import InMemoryExpenseStorage, StorageError


class FailingStorage(InMemoryExpenseStorage):
    """In-memory storage whose listing always fails."""

    async def list_expenses(self, limit=None, offset=0):
        raise StorageError("sheet unavailable")


def make_expense(expense_id, day, amount="10.00"):
    return Expense(
        id=expense_id,
        description=f"Expense {expense_id}",
        amount=Decimal(amount),
        date=date(2025, 12, day),
        paid_by="u1",
        participants=["u1", "u2"],
    )


@pytest.fixture
def flow():
    return ExpenseFlow(InMemoryExpenseStorage(), settings=AppSettings(page_size=2))


@pytest.fixture
def client(flow):
    with TestClient(create_api(flow)) as client:
        yield client


@pytest.fixture
def history(flow):
    for day in range(1, 4):
        asyncio.run(flow.storage.save_expense(make_expense(f"e{day}", day)))


class TestBasics:
    """Tests for health, users and CORS."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_users_seeded_on_startup(self, client):
        """Test that startup seeds the configured users."""
        response = client.get("/api/users")
        assert response.json() == {
            "users": [{"id": "u1", "name": "You"}, {"id": "u2", "name": "Alex"}]
        }

    def test_cors_preflight(self, client):
        """Test that configured origins are allowed."""
        response = client.options(
            "/api/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


class TestCreateExpense:
    """Tests for POST /api/expenses."""

    def test_created(self, client):
        """Test a successful creation."""
        response = client.post(
            "/api/expenses",
            json={"description": "Dinner", "total": 100, "paidBy": "u1", "payerSharePct": 60},
        )
        assert response.status_code == 201

        body = response.json()
        assert body["id"].startswith("e_")
        assert body["amount"] == 100.0
        assert body["paidBy"] == "u1"
        assert body["participants"] == ["u1", "u2"]
        assert body["shares"] == {"u1": 0.6, "u2": 0.4}
        assert body["date"] == date.today().isoformat()

    def test_invalid_payload(self, client):
        """Test that validation failures return 400 with every issue."""
        response = client.post("/api/expenses", json={})
        assert response.status_code == 400

        body = response.json()
        assert body["error"] == "Invalid payload"
        assert {issue["message"] for issue in body["issues"]} == {
            "Description is required",
            "Total is required",
            "Payer is required",
        }

    def test_wrongly_typed_field(self, client):
        """Test that a non-numeric total gets the same 400 shape."""
        response = client.post("/api/expenses", json={"description": "Dinner", "total": "lots"})
        assert response.status_code == 400

        body = response.json()
        assert body["error"] == "Invalid payload"
        assert len(body["issues"]) == 1
        assert body["issues"][0]["field"] == "total"
        assert body["issues"][0]["severity"] == "error"
        assert body["issues"][0]["message"].startswith("total: ")

    def test_unparseable_body(self, client):
        """Test that a body that isn't JSON is an invalid payload."""
        response = client.post(
            "/api/expenses",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid payload"

    def test_huge_total_rejected(self, client):
        """Test that a 1e27 total is refused and balances keep working."""
        response = client.post(
            "/api/expenses",
            json={"description": "Yacht", "total": 1e27, "paidBy": "u1"},
        )
        assert response.status_code == 400
        assert response.json()["issues"][0]["issue_type"] == "too_large"

        response = client.get("/api/balance", params={"userId": "u1"})
        assert response.status_code == 200
        assert response.json()["net"] == 0


class TestListExpenses:
    """Tests for GET /api/expenses."""

    def test_default_page_size(self, client, history):
        """Test that the configured page size applies."""
        response = client.get("/api/expenses")
        assert response.status_code == 200
        assert [e["id"] for e in response.json()["expenses"]] == ["e3", "e2"]

    def test_limit_and_offset(self, client, history):
        """Test explicit paging parameters."""
        response = client.get("/api/expenses", params={"limit": 1, "offset": 1})
        expenses = response.json()["expenses"]
        assert [e["id"] for e in expenses] == ["e2"]
        assert expenses[0]["paidBy"] == "u1"
        assert expenses[0]["amount"] == 10.0

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 501}, {"offset": -1}])
    def test_out_of_range_paging(self, client, params):
        """Test that other routes keep the standard 422."""
        response = client.get("/api/expenses", params=params)
        assert response.status_code == 422


class TestBalance:
    """Tests for GET /api/balance."""

    def test_user_id_required(self, client):
        """Test that the viewer must be named."""
        response = client.get("/api/balance")
        assert response.status_code == 422

    def test_balance(self, client, history):
        """Test net and per-expense values."""
        response = client.get("/api/balance", params={"userId": "u1"})
        assert response.status_code == 200
        assert response.json() == {
            "net": 15.0,
            "byExpense": {"e1": 5.0, "e2": 5.0, "e3": 5.0},
        }

    def test_balance_for_other_user(self, client, history):
        """Test the mirrored balance of the other user."""
        response = client.get("/api/balance", params={"userId": "u2"})
        assert response.json()["net"] == -15.0

    def test_stored_huge_amount(self, flow, client):
        """Test that a 1e27 expense already in storage still balances."""
        asyncio.run(flow.storage.save_expense(make_expense("big", 1, amount="1e27")))

        response = client.get("/api/balance", params={"userId": "u1"})
        assert response.status_code == 200
        assert response.json() == {"net": 5e26, "byExpense": {"big": 5e26}}

    def test_overflowing_balance(self, flow, client):
        """Test that a net too large for a float is sent as null."""
        for day in (1, 2):
            asyncio.run(flow.storage.save_expense(Expense(
                id=f"big{day}",
                description="Huge",
                amount=Decimal("1.5e308"),
                date=date(2025, 12, day),
                paid_by="u1",
                participants=["u2"],
            )))

        response = client.get("/api/balance", params={"userId": "u1"})
        assert response.status_code == 200
        assert response.json()["net"] is None
        assert response.json()["byExpense"]["big1"] == 1.5e308

    def test_storage_failure(self):
        """Test that storage errors map to 500."""
        flow = ExpenseFlow(FailingStorage(), settings=AppSettings())
        with TestClient(create_api(flow)) as client:
            response = client.get("/api/balance", params={"userId": "u1"})
        assert response.status_code == 500
        assert response.json() == {"error": "Storage failure"}


class TestDeleteExpense:
    """Tests for DELETE /api/expenses/{id}."""

    def test_delete_then_missing(self, client, history):
        """Test 204 on delete and 404 afterwards."""
        response = client.delete("/api/expenses/e2")
        assert response.status_code == 204

        response = client.delete("/api/expenses/e2")
        assert response.status_code == 404
        assert response.json() == {"error": "Expense not found"}

        ids = [e["id"] for e in client.get("/api/expenses", params={"limit": 10}).json()["expenses"]]
        assert ids == ["e3", "e1"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
