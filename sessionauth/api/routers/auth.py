"""Authentication router -- GitHub OAuth sign-in, sign-out, and session queries."""

import secrets

from cachetools import TTLCache
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from sessionauth.api.cookies import RequestCookieJar
from sessionauth.api.deps import get_cookie_jar, get_current_user, get_session_manager
from sessionauth.clients.github_client import authorize_url
from sessionauth.config import settings
from sessionauth.errors import BadRequestError
from sessionauth.services.session_service import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])

# In-memory state store for CSRF protection (single-process).
# Entries expire on their own; the size cap bounds abandoned flows.
_oauth_states: TTLCache[str, bool] = TTLCache(
    maxsize=settings.OAUTH_STATE_MAX,
    ttl=settings.OAUTH_STATE_TTL_SECONDS,
)


class SignInBody(BaseModel):
    code: str = Field(min_length=1)
    state: str | None = None


@router.get("/github")
async def github_oauth_redirect() -> dict:
    """Return the GitHub OAuth authorization URL with CSRF state."""
    _oauth_states.expire()
    if len(_oauth_states) >= _oauth_states.maxsize:
        raise HTTPException(status_code=503, detail="Too many pending OAuth flows")

    state = secrets.token_urlsafe(32)
    _oauth_states[state] = True

    url = authorize_url(
        client_id=settings.GITHUB_CLIENT_ID,
        redirect_uri=f"{settings.FRONTEND_URL}/auth/callback",
        scope=settings.GITHUB_OAUTH_SCOPE,
        state=state,
    )
    return {"redirect_url": url}


@router.get("/session")
async def is_signed_in(
    cookies: RequestCookieJar = Depends(get_cookie_jar),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """Report whether the request carries a valid session.  Never 401s."""
    return {"is_signed_in": await sessions.is_signed_in(cookies)}


@router.get("/me")
async def signed_in_user(
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Return the signed-in user, or 401."""
    return {
        "id": str(current_user["id"]),
        "github_id": current_user.get("github_id"),
    }


@router.post("/sign-in")
async def sign_in(
    body: SignInBody,
    cookies: RequestCookieJar = Depends(get_cookie_jar),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """Exchange a GitHub OAuth code for a session token and cookie.

    ``state`` is optional unless ``OAUTH_STATE_REQUIRED`` is set.  When
    given, it must be one issued by ``/auth/github`` and is consumed.
    """
    if body.state is None:
        if settings.OAUTH_STATE_REQUIRED:
            raise BadRequestError("Missing OAuth state")
    elif _oauth_states.pop(body.state, None) is None:
        raise BadRequestError("Invalid OAuth state")

    token = await sessions.sign_in(body.code, cookies)
    return {"token": token}


@router.post("/sign-out")
async def sign_out(
    cookies: RequestCookieJar = Depends(get_cookie_jar),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """Clear the session cookie.  Succeeds whether or not a session existed."""
    return {"sign_out": await sessions.sign_out(cookies)}
