"""
tests/test_stores.py -- Unit tests for UserStore and InventoryStore.

Both repositories run against plain in-memory SQLite; no HTTP involved.

Covers:
  - UserStore: create/lookup, duplicate email, role validation, set_role
  - InventoryStore: create, per-owner SKU uniqueness, partial updates and
    updated_at, field validation, owner-scoped delete, list ordering, upsert
  - resolve_user(): the store decides who the caller is
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.dependencies import resolve_user
from auth.models import ROLE_ADMIN, ROLE_MEMBER, SessionPayload, User
from auth.store import UserStore
from inventory.models import STATUS_ACTIVE, STATUS_DISCONTINUED, Item
from inventory.store import InventoryStore

HASH = "$2b$04$abcdefghijklmnopqrstuuS0Jm0oBq4J1QVlxWV7Q8lS3o0F2Pr2a"


@pytest.fixture
def users() -> UserStore:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def inventory() -> InventoryStore:
    store = InventoryStore("sqlite:///:memory:")
    yield store
    store.close()


class TestUserStore:
    def test_create_and_lookup(self, users: UserStore) -> None:
        user_id = users.create_user(User(email="a@x.com", name="Alex", hashed_password=HASH))
        by_id = users.get_by_id(user_id)
        by_email = users.get_by_email("a@x.com")
        assert by_id == by_email
        assert by_id.role == ROLE_MEMBER
        assert by_id.created_at

    def test_unknown_lookups_return_none(self, users: UserStore) -> None:
        assert users.get_by_id(42) is None
        assert users.get_by_email("nobody@x.com") is None

    def test_duplicate_email_raises(self, users: UserStore) -> None:
        users.create_user(User(email="a@x.com", hashed_password=HASH))
        with pytest.raises(IntegrityError):
            users.create_user(User(email="a@x.com", hashed_password=HASH))

    def test_rejects_unknown_role(self, users: UserStore) -> None:
        with pytest.raises(ValueError):
            users.create_user(User(email="a@x.com", role="OWNER", hashed_password=HASH))

    def test_rejects_missing_hash(self, users: UserStore) -> None:
        with pytest.raises(ValueError):
            users.create_user(User(email="a@x.com"))

    def test_set_role(self, users: UserStore) -> None:
        user_id = users.create_user(User(email="a@x.com", hashed_password=HASH))
        assert users.set_role(user_id, ROLE_ADMIN) is True
        assert users.get_by_id(user_id).role == ROLE_ADMIN
        assert users.set_role(999, ROLE_ADMIN) is False
        with pytest.raises(ValueError):
            users.set_role(user_id, "ROOT")

    def test_list_users_sorted_by_email(self, users: UserStore) -> None:
        for email in ("c@x.com", "a@x.com", "b@x.com"):
            users.create_user(User(email=email, hashed_password=HASH))
        assert [u.email for u in users.list_users()] == ["a@x.com", "b@x.com", "c@x.com"]


class TestResolveUser:
    def test_none_payload(self, users: UserStore) -> None:
        assert resolve_user(users, None) is None

    def test_missing_user(self, users: UserStore) -> None:
        assert resolve_user(users, SessionPayload(user_id=5, email="x@x.com", role=ROLE_ADMIN)) is None

    def test_store_role_wins(self, users: UserStore) -> None:
        user_id = users.create_user(User(email="a@x.com", hashed_password=HASH))
        resolved = resolve_user(users, SessionPayload(user_id=user_id, email="stale@x.com", role=ROLE_ADMIN))
        assert resolved.role == ROLE_MEMBER
        assert resolved.email == "a@x.com"


class TestInventoryStore:
    def test_create_sets_timestamps(self, inventory: InventoryStore) -> None:
        item_id = inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget", quantity=5))
        item = inventory.get_item(item_id)
        assert item.quantity == 5
        assert item.status == STATUS_ACTIVE
        assert item.created_at == item.updated_at != ""

    def test_sku_unique_per_owner(self, inventory: InventoryStore) -> None:
        inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget"))
        inventory.create_item(Item(owner_id=2, sku="W-1", name="Widget"))
        with pytest.raises(IntegrityError):
            inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget again"))

    def test_create_rejects_negative_quantity(self, inventory: InventoryStore) -> None:
        with pytest.raises(ValueError):
            inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget", quantity=-1))

    def test_partial_update(self, inventory: InventoryStore) -> None:
        item_id = inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget", notes="keep dry"))
        before = inventory.get_item(item_id)
        assert inventory.update_item(item_id, quantity=9, status=STATUS_DISCONTINUED) is True
        after = inventory.get_item(item_id)
        assert (after.quantity, after.status, after.notes) == (9, STATUS_DISCONTINUED, "keep dry")
        assert after.created_at == before.created_at
        assert after.updated_at > before.updated_at

    def test_update_missing_returns_false(self, inventory: InventoryStore) -> None:
        assert inventory.update_item(404, quantity=1) is False

    @pytest.mark.parametrize("fields", [{"owner_id": 2}, {"status": "LOST"}, {"min_stock": -1}])
    def test_update_rejects_bad_fields(self, inventory: InventoryStore, fields) -> None:
        item_id = inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget"))
        with pytest.raises(ValueError):
            inventory.update_item(item_id, **fields)

    def test_update_sku_collision_raises(self, inventory: InventoryStore) -> None:
        inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget"))
        other = inventory.create_item(Item(owner_id=1, sku="W-2", name="Widget 2"))
        with pytest.raises(IntegrityError):
            inventory.update_item(other, sku="W-1")

    def test_delete_requires_owner(self, inventory: InventoryStore) -> None:
        item_id = inventory.create_item(Item(owner_id=1, sku="W-1", name="Widget"))
        assert inventory.delete_item(item_id, owner_id=2) is False
        assert inventory.get_item(item_id) is not None
        assert inventory.delete_item(item_id, owner_id=1) is True
        assert inventory.get_item(item_id) is None
        assert inventory.delete_item(item_id, owner_id=1) is False

    def test_list_orders_by_last_update(self, inventory: InventoryStore) -> None:
        a = inventory.create_item(Item(owner_id=1, sku="A-1", name="Alpha"))
        b = inventory.create_item(Item(owner_id=2, sku="B-1", name="Bravo"))
        assert [i.id for i in inventory.list_items()] == [b, a]
        inventory.update_item(a, quantity=3)
        assert [i.id for i in inventory.list_items()] == [a, b]

    def test_upsert_overwrites_same_owner_sku(self, inventory: InventoryStore) -> None:
        first = inventory.upsert_item(Item(owner_id=1, sku="W-1", name="Widget", quantity=1))
        second = inventory.upsert_item(Item(owner_id=1, sku="W-1", name="Widget v2", quantity=7))
        assert first == second
        item = inventory.get_item(first)
        assert (item.name, item.quantity) == ("Widget v2", 7)
        assert len(inventory.list_items()) == 1
