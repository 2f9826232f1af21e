"""Auth dependencies -- session service wiring and cookie-based current user."""

from fastapi import Depends, Request, Response

from sessionauth.api.cookies import RequestCookieJar
from sessionauth.auth import get_token_codec
from sessionauth.clients.github_client import get_exchanger
from sessionauth.repos.user_repo import PgUserStore
from sessionauth.services.session_service import SessionManager


def get_session_manager() -> SessionManager:
    """Build the session service from current settings.

    Construction is cheap (no I/O); tests replace this dependency with a
    manager wired to fakes via ``app.dependency_overrides``.
    """
    return SessionManager(get_token_codec(), get_exchanger(), PgUserStore())


def get_cookie_jar(request: Request, response: Response) -> RequestCookieJar:
    """Cookie jar bound to this request and its outgoing response."""
    return RequestCookieJar(request, response)


async def get_current_user(
    cookies: RequestCookieJar = Depends(get_cookie_jar),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """Return the user behind the ``token`` cookie.

    Raises :class:`VerificationFailure` (401) when the cookie is missing,
    the token does not verify, or the user no longer exists.
    """
    return await sessions.signed_in_user(cookies)
