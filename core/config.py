"""
core/config.py -- StockPilot settings, read once from the environment.

Every tunable lives on Settings. Other modules receive values from it (the
API lifespan builds the stores and SessionCodec from one instance) instead of
reading os.environ themselves.

How it is put together:
  Settings is a pydantic-settings BaseSettings. Each field is filled from the
      upper-cased environment variable of the same name (bcrypt_rounds ->
      BCRYPT_ROUNDS) or from a .env file in the working directory. List
      fields such as ALLOWED_HOSTS take a JSON array.

  get_settings() is wrapped in lru_cache, so the environment is parsed on
      first use and the same object is handed out afterwards.

  validate_secret_key() runs after every field is populated. DEBUG drives
      two decisions there: what happens when SECRET_KEY is unset, and whether
      the session cookie is marked Secure when SECURE_COOKIES is unset.

SECRET_KEY rules:
  Under 32 characters is always an error; it signs every session token.
  Unset with DEBUG=true: a random key is generated for this process and every
  session dies with it. Unset without DEBUG: startup fails.

Layer rule: core/ imports nothing from api/, auth/ or inventory/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("stockpilot.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'stockpilot.db'}"

SESSION_LIFETIME_SECONDS = 60 * 60 * 24 * 7


class Settings(BaseSettings):
    """Runtime configuration for the API and the operator CLI.

    Every field has a default except the effective secret, which the
    validator below supplies or refuses.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; validate_secret_key replaces it or fails.
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "sp_session"
    session_expire_seconds: int = SESSION_LIFETIME_SECONDS
    # None: Secure unless DEBUG.
    secure_cookies: Optional[bool] = None
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    auth_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Apply the SECRET_KEY rules, then fill in derived defaults.

        Also resolves secure_cookies from DEBUG and bounds bcrypt_rounds to
        the range bcrypt accepts.
        """
        if not self.secret_key:
            if not self.debug:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Export SECRET_KEY (32+ characters) or put it in .env; "
                    "for local development set DEBUG=true instead."
                )
            self.secret_key = secrets.token_hex(32)
            logger.warning("DEBUG is on and SECRET_KEY is unset; generated a throwaway key for this process.")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, parsing the environment on first call."""
    return Settings()
