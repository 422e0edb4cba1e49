"""
api/routes/items.py -- Shared inventory routes.

Routes:
  GET    /api/items        -- whole list, newest update first   (any signed-in user)
  POST   /api/items        -- create item owned by the caller    (ADMIN)
  PATCH  /api/items/{id}   -- partial update of any item         (any signed-in user)
  DELETE /api/items/{id}   -- delete an item the caller owns     (ADMIN + owner)

Authorization asymmetry:
  Read and update are global: no owner or role check beyond being signed in.
  Delete is scoped to the owning admin; the owner check lives in the store's
  WHERE clause, so another admin's item answers 404 exactly like a missing
  one. See DESIGN.md, open questions.

Concurrency: updates are last-write-wins. There is no version field, so two
users editing the same item at once can overwrite each other.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError

from api.models import ItemCreate, ItemEnvelope, ItemListResponse, ItemResponse, ItemUpdate, SuccessResponse
from auth.dependencies import get_current_user, require_admin
from auth.models import User
from inventory.models import Item
from inventory.store import InventoryStore

logger = logging.getLogger("stockpilot.inventory")

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Item not found."})


def _sku_conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "An item with that SKU already exists for this owner."},
    )


# ---------------------------------------------------------------------------
# Request bodies
#
# Item bodies are read inside dependencies that themselves depend on the auth
# check, so a caller without the right session gets 401/403 even when the
# body is not valid JSON. A declared body parameter would be parsed first.
# ---------------------------------------------------------------------------


async def _read_body(request: Request, model: type[BaseModel]):
    try:
        payload = await request.json()
    except ValueError as exc:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
        ) from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False)]
        ) from exc


async def item_create_body(request: Request, current_user: User = Depends(require_admin)) -> ItemCreate:
    return await _read_body(request, ItemCreate)


async def item_update_body(request: Request, current_user: User = Depends(get_current_user)) -> ItemUpdate:
    return await _read_body(request, ItemUpdate)


# ---------------------------------------------------------------------------
# GET /items -- list the shared inventory
# ---------------------------------------------------------------------------


@router.get("/items", response_model=ItemListResponse)
def list_items(request: Request, current_user: User = Depends(get_current_user)) -> ItemListResponse:
    """Return every item regardless of owner, most recently updated first."""
    inventory: InventoryStore = request.app.state.inventory
    return ItemListResponse(items=[ItemResponse.from_item(i) for i in inventory.list_items()])


# ---------------------------------------------------------------------------
# POST /items -- create an item (admin only)
# ---------------------------------------------------------------------------


@router.post("/items", response_model=ItemEnvelope, status_code=201)
def create_item(
    request: Request,
    current_user: User = Depends(require_admin),
    body: ItemCreate = Depends(item_create_body),
) -> ItemEnvelope:
    """Create an item owned by the calling admin.

    The same SKU may exist under a different owner; only (owner, sku) is unique.
    """
    inventory: InventoryStore = request.app.state.inventory
    item = Item(
        owner_id=current_user.id,
        sku=body.sku,
        name=body.name,
        quantity=body.quantity,
        min_stock=body.min_stock,
        category=body.category,
        location=body.location,
        notes=body.notes,
        status=body.status.value,
    )
    try:
        item_id = inventory.create_item(item)
    except IntegrityError as exc:
        raise _sku_conflict() from exc

    created = inventory.get_item(item_id)
    if created is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "Item not found after write."},
        )
    return ItemEnvelope(item=ItemResponse.from_item(created))


# ---------------------------------------------------------------------------
# PATCH /items/{item_id} -- partial update (any signed-in user)
# ---------------------------------------------------------------------------


@router.patch("/items/{item_id}", response_model=ItemEnvelope)
def update_item(
    request: Request,
    item_id: int,
    current_user: User = Depends(get_current_user),
    body: ItemUpdate = Depends(item_update_body),
) -> ItemEnvelope:
    """Apply the fields present in the body to any item and return the full record."""
    inventory: InventoryStore = request.app.state.inventory
    try:
        updated = inventory.update_item(item_id, **body.to_store_fields())
    except IntegrityError as exc:
        raise _sku_conflict() from exc
    if not updated:
        raise _not_found()

    item = inventory.get_item(item_id)
    if item is None:
        # Deleted between the update and the read.
        raise _not_found()
    return ItemEnvelope(item=ItemResponse.from_item(item))


# ---------------------------------------------------------------------------
# DELETE /items/{item_id} -- owner-scoped delete (admin only)
# ---------------------------------------------------------------------------


@router.delete("/items/{item_id}", response_model=SuccessResponse)
def delete_item(
    request: Request,
    item_id: int,
    current_user: User = Depends(require_admin),
) -> SuccessResponse:
    """Delete an item the calling admin owns.

    Passes both item_id and current_user.id to the store. Someone else's item
    is reported as 404, never 403, so ownership is not disclosed.
    """
    inventory: InventoryStore = request.app.state.inventory
    if not inventory.delete_item(item_id, owner_id=current_user.id):
        raise _not_found()
    return SuccessResponse()
