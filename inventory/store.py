"""
inventory/store.py -- SQLAlchemy-backed persistence layer for inventory items.

Uses SQLAlchemy Core (not ORM) so the dataclasses in inventory/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. InventoryStore is the repository;
_row_to_item is the mapper. Route handlers never touch SQL directly.

Consistency rules enforced here:
  - (owner_id, sku) is UNIQUE. Inserts and sku updates that collide raise
    sqlalchemy.exc.IntegrityError; routes turn that into 409.
  - delete_item() puts the owner in the WHERE clause, so "not yours" and
    "does not exist" are the same outcome (False).
  - updated_at is refreshed on every update. Writes are single-row and
    last-write-wins; there is no version column.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = InventoryStore("sqlite:///stockpilot.db")
    item_id = store.create_item(Item(owner_id=1, sku="W-1", name="Widget", quantity=5))
    store.update_item(item_id, quantity=4)
    store.delete_item(item_id, owner_id=1)
    store.close()
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, UniqueConstraint, create_engine, event
from sqlalchemy.engine import Engine

from inventory.models import STATUS_ACTIVE, STATUSES, Item

logger = logging.getLogger("stockpilot.inventory")

# Columns an update may touch. owner_id, id and the timestamps are never
# caller-controlled.
_MUTABLE_FIELDS = frozenset({"sku", "name", "quantity", "min_stock", "category", "location", "notes", "status"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False, index=True),
    Column("sku", String(80), nullable=False),
    Column("name", String(120), nullable=False),
    Column("quantity", Integer, nullable=False, server_default="0"),
    Column("min_stock", Integer, nullable=False, server_default="0"),
    Column("category", String(80)),
    Column("location", String(80)),
    Column("notes", String(240)),
    Column("status", String(20), nullable=False, server_default=STATUS_ACTIVE),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False, index=True),
    UniqueConstraint("owner_id", "sku", name="uq_item_owner_sku"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    # Fixed-width timestamps so updated_at sorts correctly as text.
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown item fields: {sorted(unknown)!r}")
    if "status" in fields and fields["status"] not in STATUSES:
        raise ValueError(f"Unknown item status: {fields['status']!r}")
    for key in ("quantity", "min_stock"):
        if key in fields and fields[key] < 0:
            raise ValueError(f"{key} must be >= 0")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InventoryStore:
    """Repository for Item entities."""

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_item(self, item: Item) -> int:
        """Insert a new item and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the owner already has the sku.
        """
        _check_fields({"quantity": item.quantity, "min_stock": item.min_stock, "status": item.status})
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _items.insert().values(
                    owner_id=item.owner_id,
                    sku=item.sku,
                    name=item.name,
                    quantity=item.quantity,
                    min_stock=item.min_stock,
                    category=item.category,
                    location=item.location,
                    notes=item.notes,
                    status=item.status,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            item_id = result.inserted_primary_key[0]
        logger.info("Item %d created (owner=%d sku=%s)", item_id, item.owner_id, item.sku)
        return item_id

    def update_item(self, item_id: int, **fields) -> bool:
        """Apply a partial update and refresh updated_at.

        Accepted fields: sku, name, quantity, min_stock, category, location,
        notes, status. Unknown keys raise ValueError. An empty update still
        refreshes updated_at.

        Returns True if a row was updated, False if item_id was not found.
        Raises sqlalchemy.exc.IntegrityError if a new sku collides with
        another item of the same owner.
        """
        _check_fields(fields)
        with self.engine.connect() as conn:
            result = conn.execute(
                _items.update().where(_items.c.id == item_id).values(**fields, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_item(self, item_id: int, owner_id: int) -> bool:
        """Hard-delete an item owned by owner_id.

        Both conditions must match for the delete to happen. Returns False
        when the item does not exist or belongs to someone else; callers
        report both as "not found".
        """
        with self.engine.connect() as conn:
            result = conn.execute(_items.delete().where((_items.c.id == item_id) & (_items.c.owner_id == owner_id)))
            conn.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Item %d deleted by owner %d", item_id, owner_id)
        return deleted

    def upsert_item(self, item: Item) -> int:
        """Create the item, or overwrite the owner's existing item with the same sku.

        Used by the seed command so it can be re-run safely.
        """
        existing = self.get_by_owner_sku(item.owner_id, item.sku)
        if existing is None:
            return self.create_item(item)
        self.update_item(
            existing.id,
            name=item.name,
            quantity=item.quantity,
            min_stock=item.min_stock,
            category=item.category,
            location=item.location,
            notes=item.notes,
            status=item.status,
        )
        return existing.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_item(self, item_id: int) -> Optional[Item]:
        """Look up an item by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_items.select().where(_items.c.id == item_id)).fetchone()
        return _row_to_item(row) if row is not None else None

    def get_by_owner_sku(self, owner_id: int, sku: str) -> Optional[Item]:
        with self.engine.connect() as conn:
            row = conn.execute(
                _items.select().where((_items.c.owner_id == owner_id) & (_items.c.sku == sku))
            ).fetchone()
        return _row_to_item(row) if row is not None else None

    def list_items(self) -> list[Item]:
        """Return every item, most recently updated first.

        No owner filter: the inventory is one shared list.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(_items.select().order_by(_items.c.updated_at.desc(), _items.c.id.desc())).fetchall()
        return [_row_to_item(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_item(row) -> Item:
    return Item(
        id=row.id,
        owner_id=row.owner_id,
        sku=row.sku,
        name=row.name,
        quantity=row.quantity,
        min_stock=row.min_stock,
        category=row.category,
        location=row.location,
        notes=row.notes,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
