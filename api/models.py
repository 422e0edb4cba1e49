"""
API request and response models for StockPilot REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
inventory/models.py, which own the internal domain representation. Route
handlers map between the two.

Field names are camelCase on the wire (minStock, ownerId, createdAt) and
snake_case in Python; the alias generator handles the translation in both
directions.
"""

from enum import Enum
from typing import Annotated, Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import User
from inventory.models import Item

# bcrypt refuses input beyond this many bytes.
_MAX_PASSWORD_BYTES = 72


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ItemStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    DISCONTINUED = "DISCONTINUED"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


def _check_email(value: str) -> str:
    # Syntax check only. The submitted string is stored and matched as is.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {_MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register. Self-registration always yields a MEMBER."""

    email: EmailAddress
    password: str = Field(min_length=6, description="At least 6 characters.")
    name: str = Field(min_length=2, max_length=80)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: EmailAddress
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserPublic(_CamelModel):
    """The only user projection that leaves the server. There is no hash field."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str]
    role: RoleEnum

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class UserEnvelope(BaseModel):
    """Response for register, login and me. user is null when nobody is signed in."""

    user: Optional[UserPublic]


class SuccessResponse(BaseModel):
    """Acknowledgement for logout and delete."""

    success: bool = True


# ---------------------------------------------------------------------------
# Inventory -- request models
# ---------------------------------------------------------------------------


class ItemCreate(_CamelModel):
    """Request body for POST /api/items.

    Numeric strings are coerced ("5" -> 5); fractional numbers are rejected.
    Strings are kept exactly as sent, surrounding whitespace included.
    """

    name: str = Field(min_length=2, max_length=120)
    sku: str = Field(min_length=2, max_length=80)
    quantity: int = Field(ge=0)
    min_stock: int = Field(default=0, ge=0)
    category: Optional[str] = Field(default=None, max_length=80)
    location: Optional[str] = Field(default=None, max_length=80)
    notes: Optional[str] = Field(default=None, max_length=240)
    status: ItemStatusEnum = ItemStatusEnum.ACTIVE


class ItemUpdate(_CamelModel):
    """Request body for PATCH /api/items/{id}.

    Every field is optional and carries the same constraints as ItemCreate.
    Only the fields present in the body are applied (model_dump with
    exclude_unset). category, location and notes may be cleared with null;
    the other fields may not be null.
    """

    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    sku: Optional[str] = Field(default=None, min_length=2, max_length=80)
    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=80)
    location: Optional[str] = Field(default=None, max_length=80)
    notes: Optional[str] = Field(default=None, max_length=240)
    status: Optional[ItemStatusEnum] = None

    @field_validator("name", "sku", "quantity", "min_stock", "status")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Only runs for fields present in the body, so omitted fields stay untouched.
        if value is None:
            raise ValueError("Field may not be null")
        return value

    def to_store_fields(self) -> dict:
        """Return only the fields the caller sent, keyed by store column name."""
        fields = self.model_dump(exclude_unset=True)
        if "status" in fields:
            fields["status"] = fields["status"].value
        return fields


# ---------------------------------------------------------------------------
# Inventory -- response models
# ---------------------------------------------------------------------------


class ItemResponse(_CamelModel):
    """One inventory item as returned by every /api/items route."""

    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    sku: str
    name: str
    quantity: int
    min_stock: int
    category: Optional[str]
    location: Optional[str]
    notes: Optional[str]
    status: ItemStatusEnum
    created_at: str
    updated_at: str

    @classmethod
    def from_item(cls, item: Item) -> "ItemResponse":
        """Build an ItemResponse from an inventory Item dataclass."""
        return cls(
            id=item.id,
            owner_id=item.owner_id,
            sku=item.sku,
            name=item.name,
            quantity=item.quantity,
            min_stock=item.min_stock,
            category=item.category,
            location=item.location,
            notes=item.notes,
            status=item.status,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class ItemEnvelope(BaseModel):
    item: ItemResponse


class ItemListResponse(BaseModel):
    """Response for GET /api/items -- the whole shared list, newest update first."""

    items: list[ItemResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorIssue(BaseModel):
    """One field-level validation problem."""

    model_config = ConfigDict(frozen=True)

    path: list[Any]
    message: str
    type: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    issues: Optional[list[ErrorIssue]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
