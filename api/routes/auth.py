"""
api/routes/auth.py -- Session endpoints.

Routes:
  POST /api/auth/register   -- create a MEMBER account; sets session cookie; 201
  POST /api/auth/login      -- password login; sets session cookie
  POST /api/auth/logout     -- expires the session cookie; always 200
  GET  /api/auth/me         -- current user or null (never 401)

Security:
  Register and login are rate-limited per client IP (AUTH_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Bad email and bad password share one response so accounts cannot be
  enumerated through login.
  Cache-Control: no-store on every response that sets a session cookie.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import auth_rate_limit, limiter
from api.models import LoginRequest, RegisterRequest, SuccessResponse, UserEnvelope, UserPublic
from auth.dependencies import try_get_current_user
from auth.models import ROLE_MEMBER, SessionPayload, User
from auth.store import UserStore
from auth.tokens import SessionCodec, authenticate_user, clear_session_cookie, hash_password, set_session_cookie
from core.config import Settings

logger = logging.getLogger("stockpilot.auth")

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public
# - POST /api/auth/logout:   public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:       optional auth (try_get_current_user)
router = APIRouter()


def _session_response(request: Request, user: User, status_code: int) -> JSONResponse:
    """Issue a session for user and return {user} with the cookie attached."""
    settings: Settings = request.app.state.settings
    codec: SessionCodec = request.app.state.session_codec
    token = codec.issue(SessionPayload(user_id=user.id, email=user.email, role=user.role))
    resp = JSONResponse(
        status_code=status_code,
        content=UserEnvelope(user=UserPublic.from_user(user)).model_dump(mode="json", by_alias=True),
    )
    set_session_cookie(resp, token, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=UserEnvelope, status_code=201)
@limiter.limit(auth_rate_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a MEMBER account and sign it in.

    ADMIN accounts are never created here; they come from the CLI or seed.
    """
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    conflict = HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "Email already registered."},
    )
    if user_store.get_by_email(body.email) is not None:
        raise conflict

    new_user = User(
        email=body.email,
        name=body.name,
        role=ROLE_MEMBER,
        hashed_password=hash_password(body.password, settings.bcrypt_rounds),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        # A concurrent registration won the race after our existence check.
        raise conflict from exc

    created = user_store.get_by_id(user_id)
    if created is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "User not found after write."},
        )
    logger.info("Registered user %d", created.id)
    return _session_response(request, created, status_code=201)


@router.post("/auth/login", response_model=UserEnvelope)
@limiter.limit(auth_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie.

    Returns the same generic error for an unknown email and a wrong password.
    """
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password, settings.bcrypt_rounds)
    if user is None:
        logger.warning("Failed login from %s", request.client.host if request.client else "unknown")
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _session_response(request, user, status_code=200)


@router.post("/auth/logout", response_model=SuccessResponse)
async def logout(request: Request) -> JSONResponse:
    """Expire the session cookie. Idempotent: succeeds with or without a session."""
    resp = JSONResponse(content=SuccessResponse().model_dump())
    clear_session_cookie(resp, request.app.state.settings)
    return resp


@router.get("/auth/me", response_model=UserEnvelope)
def me(user: User | None = Depends(try_get_current_user)) -> UserEnvelope:
    """Return the signed-in user, or {"user": null} when there is no valid session."""
    return UserEnvelope(user=UserPublic.from_user(user) if user is not None else None)
