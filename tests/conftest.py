"""
tests/conftest.py -- Shared test fixtures for StockPilot integration tests.

This module provides:
  - _make_test_stores(): isolated in-memory DB shared by both stores
  - _patch_lifespan(): wires test stores and a SessionCodec into app.state,
    bypassing the real startup
  - api: module-scoped harness (TestClient + stores + codec)
  - client: the harness client with an empty cookie jar for each test
  - create_user / sign_in: helpers for provisioning accounts and sessions

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

Environment must be set before any api/auth/core import: DEBUG lets
get_settings() auto-generate SECRET_KEY, "testserver" is TestClient's Host
header, and a low bcrypt cost keeps the suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: configure before importing the app.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ROLE_MEMBER, User
from auth.store import UserStore
from auth.tokens import SessionCodec, hash_password
from core.config import get_settings
from inventory.store import InventoryStore

DEFAULT_PASSWORD = "secret1"


@dataclass
class ApiHarness:
    client: TestClient
    user_store: UserStore
    inventory: InventoryStore
    codec: SessionCodec


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, InventoryStore]:
    """Create stores over one named shared-memory SQLite database.

    Both stores point at the same URL, as they do in production.
    """
    url = f"sqlite:///file:test_stockpilot_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), InventoryStore(url)


def _patch_lifespan(user_store: UserStore, inventory: InventoryStore, codec: SessionCodec):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.session_codec = codec
        app.state.user_store = user_store
        app.state.inventory = inventory
        yield

    return test_lifespan


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@stockpilot.dev"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api() -> Generator[ApiHarness, None, None]:
    """Yield a harness around the real app with isolated stores.

    One TestClient per test module for speed; the stores live as long as the
    module, so tests use unique emails.
    """
    settings = get_settings()
    user_store, inventory = _make_test_stores(uuid.uuid4().hex[:8])
    codec = SessionCodec(settings.secret_key, settings.session_expire_seconds)

    app.router.lifespan_context = _patch_lifespan(user_store, inventory, codec)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, user_store=user_store, inventory=inventory, codec=codec)

    user_store.close()
    inventory.close()


@pytest.fixture
def client(api: ApiHarness) -> TestClient:
    """The harness client with no session cookie left over from earlier tests."""
    api.client.cookies.clear()
    return api.client


@pytest.fixture
def create_user(api: ApiHarness) -> Callable[..., User]:
    """Insert a user directly into the store (the only way to get an ADMIN)."""

    def _create(email: str | None = None, role: str = ROLE_MEMBER, password: str = DEFAULT_PASSWORD, name: str = "Test User") -> User:
        user_id = api.user_store.create_user(
            User(
                email=email or unique_email(role.lower()),
                name=name,
                role=role,
                hashed_password=hash_password(password, get_settings().bcrypt_rounds),
            )
        )
        return api.user_store.get_by_id(user_id)

    return _create


@pytest.fixture
def sign_in(client: TestClient) -> Callable[[str, str], dict]:
    """Log in through the API so the client's cookie jar holds the session."""

    def _sign_in(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["user"]

    return _sign_in


@pytest.fixture
def new_email() -> Callable[..., str]:
    """Return a factory for emails that are unique across the module's database."""
    return unique_email
