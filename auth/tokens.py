"""
auth/tokens.py -- Session tokens, password hashing, and the session cookie.

Security design decisions:
  Sessions: python-jose with HS256. SessionCodec is built from Settings once
       per application (see api/main.py lifespan) and carries the signing
       secret and the lifetime explicitly; nothing here reads configuration
       at import time. Tokens carry user_id, email, role, iat and exp.
       Verification returns None on any failure -- the dependency layer turns
       that into "no user".

  Passwords: bcrypt with an explicit cost factor (Settings.bcrypt_rounds,
       default 10). The dummy hash enables timing equalization in
       authenticate_user() so response time does not reveal whether an email
       is registered.

Layer rule: no imports from api/ or inventory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import SessionPayload

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("stockpilot.auth")

_ALGORITHM = "HS256"
_DEFAULT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = _DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt rejects (or, in older releases, truncates) input longer than 72
    bytes. The API models cap the UTF-8 encoded password at 72 bytes.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    # Same cost as real hashes so unknown-email logins take as long as
    # wrong-password logins.
    return hash_password("stockpilot_timing_dummy", rounds)


def authenticate_user(store: UserStore, email: str, password: str, rounds: int = _DEFAULT_ROUNDS) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against a dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure. Callers must not tell
    the two failure cases apart in their response.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, _dummy_hash(rounds))
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Session codec
# ---------------------------------------------------------------------------


class SessionCodec:
    """Issue and verify signed, time-limited session tokens.

    Usage:
        codec = SessionCodec(settings.secret_key, settings.session_expire_seconds)
        token = codec.issue(SessionPayload(user_id=1, email="a@x.com", role="MEMBER"))
        payload = codec.verify(token)   # SessionPayload or None
    """

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        if not secret_key:
            raise ValueError("SessionCodec requires a signing secret.")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def issue(self, payload: SessionPayload, now: datetime | None = None) -> str:
        """Encode a signed JWT for the payload, valid for expire_seconds from now."""
        issued = now or datetime.now(timezone.utc)
        expires = issued + timedelta(seconds=self.expire_seconds)
        claims = {
            "sub": str(payload.user_id),
            "user_id": payload.user_id,
            "email": payload.email,
            "role": payload.role,
            "iat": int(issued.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> SessionPayload | None:
        """Decode and verify a token. Returns the payload or None on any failure.

        Missing, malformed, tampered and expired tokens all come back as None.
        An absent session is a normal state, not an error, so nothing here
        raises.
        """
        if not token:
            return None
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        try:
            return SessionPayload(
                user_id=int(claims["user_id"]),
                email=str(claims["email"]),
                role=str(claims["role"]),
                issued_at=claims.get("iat"),
                expires_at=claims.get("exp"),
            )
        except (KeyError, TypeError, ValueError):
            return None


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str, settings: Settings) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS outside DEBUG mode (or per SECURE_COOKIES).
    max_age: matches the token lifetime so both expire together.
    """
    response.set_cookie(
        settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=bool(settings.secure_cookies),
        max_age=settings.session_expire_seconds,
        path="/",
    )


def clear_session_cookie(response, settings: Settings) -> None:
    """Replace the session cookie with an empty, already-expired one."""
    response.set_cookie(
        settings.session_cookie_name,
        value="",
        httponly=True,
        samesite="lax",
        secure=bool(settings.secure_cookies),
        max_age=0,
        path="/",
    )
