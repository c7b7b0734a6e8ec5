"""
Shared fixtures.

No real MongoDB in tests: every store runs on an in-memory mongomock
database, injected into the app through dependency overrides.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import AuthService
from database import get_database
from main import app
from settings import Settings, get_settings
from stores import TransactionStore, UserStore
from transactions import TransactionService


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        secret_key="test-secret-key-0123456789abcdef0123456789",
        bcrypt_rounds=4,
        seed_demo_user=False,
    )


@pytest.fixture
def db():
    return mongomock.MongoClient()["expense_manager_test"]


@pytest.fixture
def user_store(db):
    store = UserStore(db)
    store.ensure_indexes()
    return store


@pytest.fixture
def transaction_store(db):
    store = TransactionStore(db)
    store.ensure_indexes()
    return store


@pytest.fixture
def auth_service(user_store, settings):
    return AuthService(user_store, settings)


@pytest.fixture
def transaction_service(transaction_store):
    return TransactionService(transaction_store)


@pytest.fixture
def client(db, settings, user_store, transaction_store):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Register an account (if needed) and return auth headers for it."""

    def _login(email="ana@example.com", password="secret123"):
        client.post("/api/auth/register", json={"email": email, "password": password})
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture
def make_transaction():
    """Build a valid transaction body, overriding any field."""

    def _make(**overrides):
        fields = {
            "description": "Supermercado",
            "amount": 500,
            "date": "2023-05-10",
            "category": "Alimentação",
            "type": "expense",
        }
        fields.update(overrides)
        return fields

    return _make
