"""Application configuration loaded from environment variables.

Uses ``pydantic-settings`` for automatic env-var loading, type coercion,
and ``.env`` file support.  Validates required settings on import -- fails
fast if critical vars are missing outside of tests.
"""

VERSION = "0.1.0"

import sys
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Required var names -- checked after instantiation (not during), so tests
# that leave them blank still work.
# ---------------------------------------------------------------------------
_REQUIRED_VARS: list[str] = [
    "DATABASE_URL",
    "APP_SECRET",
    "GITHUB_CLIENT_ID",
    "GITHUB_CLIENT_SECRET",
]


class Settings(BaseSettings):
    """Application settings -- sourced from environment / ``.env`` file.

    Required vars (must be set in production, may be blank in test):
      DATABASE_URL, APP_SECRET, GITHUB_CLIENT_ID, GITHUB_CLIENT_SECRET
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- required in production (default empty so tests don't fail) --
    DATABASE_URL: str = ""
    APP_SECRET: str = ""
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""

    # -- optional with sensible defaults --
    FRONTEND_URL: str = "http://localhost:5173"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # -------------------------------------------------------------------------
    # Session token.
    #
    # TOKEN_EXPIRY_HOURS = 0 issues tokens without an ``exp`` claim; sessions
    # then live until the cookie is cleared.  Any positive value adds ``exp``
    # and makes it mandatory on verify.  Requires a restart to take effect.
    # -------------------------------------------------------------------------
    TOKEN_EXPIRY_HOURS: int = Field(default=0, ge=0)

    # Session cookie
    SESSION_COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
    COOKIE_MAX_AGE_DAYS: int = Field(default=365, ge=0)  # 0 = browser-session cookie

    # GitHub OAuth
    GITHUB_OAUTH_SCOPE: str = "read:user"
    GITHUB_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    OAUTH_STATE_TTL_SECONDS: int = 600  # 10 minutes
    OAUTH_STATE_MAX: int = 10_000
    OAUTH_STATE_REQUIRED: bool = False  # reject sign-in bodies without ``state``


settings = Settings()


# Validate at import time -- but only when NOT running under pytest.
if "pytest" not in sys.modules:
    _missing = [v for v in _REQUIRED_VARS if not getattr(settings, v)]
    if _missing:
        print(
            f"[config] FATAL: missing required environment variables: "
            f"{', '.join(_missing)}",
            file=sys.stderr,
        )
        sys.exit(1)
