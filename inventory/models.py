"""
inventory/models.py -- Domain dataclasses for the StockPilot inventory.

Pure data containers with zero logic. Persistence rules (ownership-scoped
delete, timestamps, the owner/sku uniqueness) live in inventory/store.py.
"""

from dataclasses import dataclass
from typing import Optional

STATUS_ACTIVE = "ACTIVE"
STATUS_DISCONTINUED = "DISCONTINUED"
STATUSES = (STATUS_ACTIVE, STATUS_DISCONTINUED)


@dataclass
class Item:
    """A stocked item on the shared inventory list.

    owner_id is the id of the admin who created the item. It only decides who
    may delete the item; every signed-in user can read and update it.

    Low stock means quantity <= min_stock. That is derived by clients and
    never stored.

    id is None before the record is written to the database.
    """

    owner_id: int
    sku: str
    name: str
    quantity: int = 0
    min_stock: int = 0
    category: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: str = STATUS_ACTIVE  # "ACTIVE" | "DISCONTINUED"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed by store on every update
