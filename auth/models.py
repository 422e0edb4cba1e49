"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in inventory/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "ADMIN"
ROLE_MEMBER = "MEMBER"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)


@dataclass
class User:
    """A registered identity.

    email is the login handle and is unique across the users table. It is
    matched exactly (case-sensitive) against the stored value.

    hashed_password is populated only when the record comes from the store;
    route handlers project users through the public API model, which has no
    hash field.
    """

    email: str
    role: str = ROLE_MEMBER  # "ADMIN" | "MEMBER"
    id: int | None = None
    name: str | None = None
    hashed_password: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class SessionPayload:
    """Claims carried inside a session token.

    This is a denormalized snapshot taken at login time. It proves who the
    caller was, not what they may do now: authorization always re-reads the
    User row by user_id.
    """

    user_id: int
    email: str
    role: str
    issued_at: int | None = None  # epoch seconds, set by the codec
    expires_at: int | None = None
