"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Resolving the caller is a two-step composition, kept as two functions on
purpose:
  1. verify  -- SessionCodec.verify() checks signature and expiry and yields
                the token's claims (or None).
  2. resolve -- resolve_user() re-reads the User row by id. The role and name
                in the token are ignored; the store is authoritative, so a
                role change or a removed user takes effect on the next request.

The token comes from the session cookie (set by login/register). A
non-browser client may send the same token as "Authorization: Bearer <token>".

Three strengths of the same check:
  try_get_current_user()  User or None, for routes that work signed out
  get_current_user()      User, or 401 unauthorized
  require_admin()         ADMIN User, or 401 then 403 forbidden

Layer rule: no imports from api/ or inventory/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import ROLE_ADMIN, SessionPayload, User
from auth.store import UserStore
from auth.tokens import SessionCodec


def resolve_user(store: UserStore, payload: SessionPayload | None) -> User | None:
    """Return the live User for verified claims, or None if there is none."""
    if payload is None:
        return None
    return store.get_by_id(payload.user_id)


def _extract_token(request: Request) -> str | None:
    cookie_name = request.app.state.settings.session_cookie_name
    token = request.cookies.get(cookie_name)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def try_get_current_user(request: Request) -> User | None:
    """Return the authenticated User for this request, or None.

    Never raises. A missing, bad or orphaned session all come back as None.
    Read-only: nothing is written to the store or the response.
    """
    codec: SessionCodec = request.app.state.session_codec
    user_store: UserStore = request.app.state.user_store
    return resolve_user(user_store, codec.verify(_extract_token(request)))


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_admin(request: Request) -> User:
    """Require the ADMIN role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin.

    The 401 check always runs first. Routes that take a body read it in a
    dependency chained after this one (see api/routes/items.py), so a MEMBER
    gets 403 whatever they send, malformed JSON included.
    """
    user = get_current_user(request)
    if user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return user
