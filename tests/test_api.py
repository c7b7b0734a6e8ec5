"""End-to-end tests of the REST API through FastAPI's TestClient."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from auth import ALGORITHM
from database import get_database
from main import app, get_transaction_service


class TestAuthEndpoints:

    def test_register_and_login(self, client, settings):
        response = client.post("/api/auth/register", json={"email": "ana@example.com", "password": "secret123"})
        assert response.status_code == 201
        assert "message" in response.json()

        response = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["token"]
        assert jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])["email"] == "ana@example.com"

    def test_register_and_login_with_mixed_case_domain(self, client):
        body = {"email": "ana@Example.COM", "password": "secret123"}
        assert client.post("/api/auth/register", json=body).status_code == 201

        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 200
        assert response.json()["token"]

    def test_duplicate_registration(self, client):
        body = {"email": "ana@example.com", "password": "secret123"}
        client.post("/api/auth/register", json=body)
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    @pytest.mark.parametrize("body", [
        {"email": "not-an-email", "password": "secret123"},
        {"email": "ana@example.com"},
        {"email": "ana@example.com", "password": "123"},
    ])
    def test_register_validation(self, client, body):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid fields")

    def test_login_failures_are_indistinguishable(self, client, login):
        login("ana@example.com", "secret123")
        wrong_password = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "wrong"})
        unknown_email = client.post("/api/auth/login", json={"email": "zoe@example.com", "password": "secret123"})

        assert wrong_password.status_code == unknown_email.status_code == 400
        assert wrong_password.json() == unknown_email.json()

    def test_me(self, client, login):
        headers = login("ana@example.com")
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["email"] == "ana@example.com"


class TestTokenChecks:

    def test_missing_header_is_401(self, client):
        assert client.get("/api/transactions").status_code == 401

    def test_malformed_header_is_401(self, client):
        response = client.get("/api/transactions", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_invalid_token_is_403(self, client):
        response = client.get("/api/dashboard", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 403

    def test_expired_token_is_403(self, client, settings):
        token = jwt.encode(
            {"id": "64b7f0c2e4b0a1a2b3c4d5e6", "email": "a@example.com",
             "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.secret_key,
            algorithm=ALGORITHM,
        )
        response = client.get("/api/transactions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid or expired token"


class TestTransactionEndpoints:

    def test_create_and_get(self, client, login, make_transaction):
        headers = login()
        response = client.post("/api/transactions", json=make_transaction(), headers=headers)
        assert response.status_code == 201
        created = response.json()
        assert set(created) >= {"id", "description", "amount", "date", "category", "type", "userId", "createdAt"}
        assert created["date"] == "2023-05-10"

        response = client.get(f"/api/transactions/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == created

    def test_create_missing_field_is_400(self, client, login, make_transaction):
        body = make_transaction()
        del body["category"]
        response = client.post("/api/transactions", json=body, headers=login())
        assert response.status_code == 400
        assert "category" in response.json()["detail"]

    def test_list_with_filters(self, client, login, make_transaction):
        headers = login()
        client.post("/api/transactions", json=make_transaction(date="2023-05-01", category="Moradia"), headers=headers)
        client.post("/api/transactions", json=make_transaction(date="2023-06-05", category="Moradia"), headers=headers)
        client.post("/api/transactions", json=make_transaction(date="2023-06-07", category="Lazer"), headers=headers)

        response = client.get("/api/transactions", params={"startDate": "2023-06-01"}, headers=headers)
        assert [t["date"] for t in response.json()] == ["2023-06-07", "2023-06-05"]

        response = client.get(
            "/api/transactions", params={"startDate": "2023-06-01", "category": "Moradia"}, headers=headers
        )
        assert [t["date"] for t in response.json()] == ["2023-06-05"]

        response = client.get("/api/transactions", headers=headers)
        assert len(response.json()) == 3

    def test_bad_date_filter_is_400(self, client, login):
        response = client.get("/api/transactions", params={"startDate": "yesterday"}, headers=login())
        assert response.status_code == 400

    def test_update(self, client, login, make_transaction):
        headers = login()
        created = client.post("/api/transactions", json=make_transaction(), headers=headers).json()

        response = client.put(
            f"/api/transactions/{created['id']}", json=make_transaction(amount=650.5), headers=headers
        )
        assert response.status_code == 200
        assert response.json()["amount"] == 650.5
        assert response.json()["createdAt"] == created["createdAt"]

    def test_delete(self, client, login, make_transaction):
        headers = login()
        created = client.post("/api/transactions", json=make_transaction(), headers=headers).json()

        response = client.delete(f"/api/transactions/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert client.get(f"/api/transactions/{created['id']}", headers=headers).status_code == 404

    @pytest.mark.parametrize("transaction_id", ["64b7f0c2e4b0a1a2b3c4d5e8", "nope"])
    def test_delete_unknown_is_404(self, client, login, transaction_id):
        response = client.delete(f"/api/transactions/{transaction_id}", headers=login())
        assert response.status_code == 404

    def test_other_users_records_are_not_found(self, client, login, make_transaction):
        ana = login("ana@example.com")
        bruno = login("bruno@example.com")
        created = client.post("/api/transactions", json=make_transaction(), headers=ana).json()
        url = f"/api/transactions/{created['id']}"

        assert client.get(url, headers=bruno).status_code == 404
        assert client.put(url, json=make_transaction(amount=1), headers=bruno).status_code == 404
        assert client.delete(url, headers=bruno).status_code == 404
        assert client.get("/api/transactions", headers=bruno).json() == []

        assert client.get(url, headers=ana).json()["amount"] == 500


class TestDashboardEndpoint:

    def test_dashboard(self, client, login, make_transaction):
        headers = login()
        client.post("/api/transactions", headers=headers, json=make_transaction(
            description="Salário", amount=5000, date="2023-05-01", category="Salário", type="income"))
        client.post("/api/transactions", headers=headers, json=make_transaction(
            description="Aluguel", amount=1200, date="2023-05-05", category="Moradia"))
        client.post("/api/transactions", headers=headers, json=make_transaction(
            amount=500, date="2023-05-10", category="Alimentação"))

        response = client.get("/api/dashboard", headers=headers)
        assert response.status_code == 200
        assert response.json() == {
            "totalIncome": 5000.0,
            "totalExpense": 1700.0,
            "balance": 3300.0,
            "categoryTotals": [
                {"category": "Moradia", "total": 1200.0},
                {"category": "Alimentação", "total": 500.0},
            ],
            "monthlyData": [
                {"month": "2023-05", "income": 5000.0, "expense": 1700.0, "balance": 3300.0},
            ],
        }

    def test_empty_dashboard(self, client, login):
        response = client.get("/api/dashboard", headers=login())
        assert response.json()["balance"] == 0
        assert response.json()["categoryTotals"] == []


class TestServerErrors:

    def test_unexpected_error_is_500_without_details(self, client, login):
        headers = login()
        broken = MagicMock()
        broken.summary.side_effect = RuntimeError("secret internals")
        app.dependency_overrides[get_transaction_service] = lambda: broken

        response = TestClient(app, raise_server_exceptions=False).get("/api/dashboard", headers=headers)
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

    def test_database_error_is_500(self, client, login):
        headers = login()
        broken = MagicMock()
        broken.list.side_effect = ServerSelectionTimeoutError("no servers")
        app.dependency_overrides[get_transaction_service] = lambda: broken

        response = client.get("/api/transactions", headers=headers)
        assert response.status_code == 500
        assert response.json() == {"detail": "Database not available"}


class TestHealth:

    def test_root(self, client):
        assert client.get("/").status_code == 200

    def test_health_ok(self, client):
        db = MagicMock()
        db.command.return_value = {"ok": 1.0}
        app.dependency_overrides[get_database] = lambda: db
        assert client.get("/api/health").json()["status"] == "ok"

    def test_health_degraded(self, client):
        db = MagicMock()
        db.command.side_effect = ServerSelectionTimeoutError("no servers")
        app.dependency_overrides[get_database] = lambda: db
        assert client.get("/api/health").json() == {"status": "degraded", "database": "unavailable"}
