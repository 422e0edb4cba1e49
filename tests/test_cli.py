"""
tests/test_cli.py -- Tests for the operator CLI in main.py.

Each test points --db-url at a fresh SQLite file under tmp_path and inspects
the result through the stores.
"""

from __future__ import annotations

import pytest

from auth.models import ROLE_ADMIN, ROLE_MEMBER
from auth.store import UserStore
from auth.tokens import verify_password
from inventory.seed import DEMO_EMAIL, DEMO_ITEMS, DEMO_PASSWORD
from inventory.store import InventoryStore
from main import main


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _run(db_url: str, *args: str) -> int:
    return main(["--db-url", db_url, *args])


class TestSeed:
    def test_seed_creates_demo_admin_and_items(self, db_url, capsys) -> None:
        assert _run(db_url, "seed") == 0
        assert DEMO_EMAIL in capsys.readouterr().out

        users = UserStore(db_url)
        inventory = InventoryStore(db_url)
        try:
            admin = users.get_by_email(DEMO_EMAIL)
            assert admin.role == ROLE_ADMIN
            assert verify_password(DEMO_PASSWORD, admin.hashed_password)
            items = inventory.list_items()
            assert sorted(i.sku for i in items) == sorted(d["sku"] for d in DEMO_ITEMS)
            assert all(i.owner_id == admin.id for i in items)
        finally:
            users.close()
            inventory.close()

    def test_seed_is_idempotent(self, db_url) -> None:
        assert _run(db_url, "seed") == 0
        assert _run(db_url, "seed") == 0
        users = UserStore(db_url)
        inventory = InventoryStore(db_url)
        try:
            assert len(users.list_users()) == 1
            assert len(inventory.list_items()) == len(DEMO_ITEMS)
        finally:
            users.close()
            inventory.close()


class TestUserCommands:
    def test_create_user_defaults_to_member(self, db_url) -> None:
        assert _run(db_url, "create-user", "clerk@stockpilot.dev", "--password", "secret1", "--name", "Clerk") == 0
        users = UserStore(db_url)
        try:
            user = users.get_by_email("clerk@stockpilot.dev")
            assert (user.role, user.name) == (ROLE_MEMBER, "Clerk")
        finally:
            users.close()

    def test_create_admin(self, db_url) -> None:
        assert _run(db_url, "create-user", "ops@stockpilot.dev", "--password", "secret1", "--role", ROLE_ADMIN) == 0
        users = UserStore(db_url)
        try:
            assert users.get_by_email("ops@stockpilot.dev").role == ROLE_ADMIN
        finally:
            users.close()

    def test_duplicate_user_fails(self, db_url, capsys) -> None:
        assert _run(db_url, "create-user", "clerk@stockpilot.dev", "--password", "secret1") == 0
        assert _run(db_url, "create-user", "clerk@stockpilot.dev", "--password", "secret1") == 1
        assert "already exists" in capsys.readouterr().out

    def test_short_password_fails(self, db_url) -> None:
        assert _run(db_url, "create-user", "clerk@stockpilot.dev", "--password", "123") == 1

    def test_set_role(self, db_url, capsys) -> None:
        _run(db_url, "create-user", "clerk@stockpilot.dev", "--password", "secret1")
        assert _run(db_url, "set-role", "clerk@stockpilot.dev", ROLE_ADMIN) == 0
        assert _run(db_url, "list-users") == 0
        out = capsys.readouterr().out
        assert ROLE_ADMIN in out and "clerk@stockpilot.dev" in out

    def test_set_role_unknown_user_fails(self, db_url) -> None:
        assert _run(db_url, "set-role", "ghost@stockpilot.dev", ROLE_ADMIN) == 1

    def test_invalid_role_is_usage_error(self, db_url) -> None:
        with pytest.raises(SystemExit):
            _run(db_url, "set-role", "clerk@stockpilot.dev", "OWNER")
