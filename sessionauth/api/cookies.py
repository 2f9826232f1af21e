"""Cookie transport -- how the session service reads and writes the ``token`` cookie."""

from fastapi import Request, Response

from sessionauth.config import settings


class RequestCookieJar:
    """``CookieJar`` over a Starlette request/response pair.

    Outbound cookies are ``HttpOnly`` so page scripts never see the
    session token; ``Secure`` and ``SameSite`` come from settings.
    """

    def __init__(self, request: Request, response: Response) -> None:
        self._request = request
        self._response = response

    def get(self, name: str) -> str | None:
        return self._request.cookies.get(name)

    def set(self, name: str, value: str) -> None:
        max_age_days = settings.COOKIE_MAX_AGE_DAYS
        self._response.set_cookie(
            name,
            value,
            max_age=max_age_days * 86400 if max_age_days else None,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
        )

    def clear(self, name: str) -> None:
        self._response.delete_cookie(
            name,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
        )
