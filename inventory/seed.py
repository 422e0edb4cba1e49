"""
inventory/seed.py -- Demo data for local development.

Creates (or refreshes) one ADMIN account and a handful of items it owns.
Safe to run repeatedly: the admin is looked up by email and items are
upserted on (owner_id, sku).
"""

from __future__ import annotations

from auth.models import ROLE_ADMIN, User
from auth.store import UserStore
from auth.tokens import hash_password
from inventory.models import Item
from inventory.store import InventoryStore

DEMO_EMAIL = "demo@stockpilot.dev"
DEMO_PASSWORD = "demo1234"  # noqa: S105 -- published demo credential
DEMO_NAME = "Demo Manager"

DEMO_ITEMS: list[dict] = [
    {
        "name": "Thermal Label Rolls",
        "sku": "LBL-THERM-100",
        "quantity": 120,
        "category": "Supplies",
        "location": "Aisle 1",
        "min_stock": 50,
        "notes": "4x6 rolls",
    },
    {
        "name": "USB Barcode Scanner",
        "sku": "SCN-USB-200",
        "quantity": 22,
        "category": "Hardware",
        "location": "Aisle 3",
        "min_stock": 10,
        "notes": "Plug-and-play",
    },
    {
        "name": "Thermal Printer",
        "sku": "PRT-THERM-500",
        "quantity": 8,
        "category": "Hardware",
        "location": "Backroom",
        "min_stock": 5,
        "notes": "Requires 4x6 labels",
    },
]


def ensure_demo_admin(user_store: UserStore, rounds: int) -> User:
    """Return the demo admin, creating it or restoring its ADMIN role as needed."""
    existing = user_store.get_by_email(DEMO_EMAIL)
    if existing is not None:
        if existing.role != ROLE_ADMIN:
            user_store.set_role(existing.id, ROLE_ADMIN)
            existing.role = ROLE_ADMIN
        return existing

    user_id = user_store.create_user(
        User(
            email=DEMO_EMAIL,
            name=DEMO_NAME,
            role=ROLE_ADMIN,
            hashed_password=hash_password(DEMO_PASSWORD, rounds),
        )
    )
    return user_store.get_by_id(user_id)


def seed_demo(user_store: UserStore, inventory: InventoryStore, rounds: int) -> tuple[User, list[int]]:
    """Seed the demo admin and its items. Returns (admin, item_ids)."""
    admin = ensure_demo_admin(user_store, rounds)
    item_ids = [inventory.upsert_item(Item(owner_id=admin.id, **fields)) for fields in DEMO_ITEMS]
    return admin, item_ids
