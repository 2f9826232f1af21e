"""Session service -- GitHub sign-in, sign-out, and per-request identity resolution.

Sign-in runs four steps in order and stops at the first failure:

1. Exchange the OAuth code for a GitHub access token.
2. Fetch the GitHub user id with that token.
3. Upsert the local user for that GitHub id.
4. Issue a session token and write it to the ``token`` cookie.

A token is only ever issued after all earlier steps succeeded, so a
failed or timed-out provider call leaves no partial session behind.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from sessionauth.auth import Claims, TokenCodec
from sessionauth.clients.github_client import OAuthExchanger
from sessionauth.config import settings
from sessionauth.errors import UserLookupMiss, VerificationFailure
from sessionauth.repos.user_repo import UserStore

logger = logging.getLogger(__name__)


class CookieJar(Protocol):
    """Transport seam: read inbound cookies, stage outbound ones."""

    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str) -> None: ...

    def clear(self, name: str) -> None: ...


# ── Session states ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NoSession:
    """No token cookie, or an empty one."""


@dataclass(frozen=True)
class InvalidSession:
    """A token was presented but could not be turned into an identity."""

    reason: str
    error: VerificationFailure


@dataclass(frozen=True)
class Authenticated:
    """Token verified; ``user`` is set when the store lookup was requested."""

    claims: Claims
    user: dict | None = None


SessionState = NoSession | InvalidSession | Authenticated


# ── Service ──────────────────────────────────────────────────────────────────


class SessionManager:
    """Orchestrates the codec, the OAuth exchanger and the user store.

    Holds no per-request state; a single instance serves every request.
    """

    def __init__(
        self,
        codec: TokenCodec,
        exchanger: OAuthExchanger,
        users: UserStore,
        *,
        cookie_name: str | None = None,
    ) -> None:
        self._codec = codec
        self._exchanger = exchanger
        self._users = users
        self._cookie_name = cookie_name or settings.SESSION_COOKIE_NAME

    async def resolve_session(self, cookies: CookieJar, *, load_user: bool = True) -> SessionState:
        """Classify the request's session.

        Never raises for an authentication problem; store errors propagate.
        """
        token = cookies.get(self._cookie_name)
        if not token:
            return NoSession()

        try:
            claims = self._codec.verify(token)
        except VerificationFailure as exc:
            logger.info("Rejected session token: %s", exc.reason)
            return InvalidSession(exc.reason, exc)

        if not load_user:
            return Authenticated(claims)

        if not claims.user_id:
            error = VerificationFailure(reason="session token has no userId")
            return InvalidSession(error.reason, error)

        user = await self._users.get_user(claims.user_id)
        if user is None:
            miss = UserLookupMiss(claims.user_id)
            logger.info("Session references a missing user: %s", miss.reason)
            return InvalidSession(miss.reason, miss)
        return Authenticated(claims, user)

    async def is_signed_in(self, cookies: CookieJar) -> bool:
        """True when the request carries a validly signed session token."""
        state = await self.resolve_session(cookies, load_user=False)
        return isinstance(state, Authenticated)

    async def signed_in_user(self, cookies: CookieJar) -> dict:
        """Return the signed-in user or raise :class:`VerificationFailure`."""
        state = await self.resolve_session(cookies)
        if isinstance(state, Authenticated):
            return state.user  # type: ignore[return-value]
        if isinstance(state, InvalidSession):
            raise state.error
        raise VerificationFailure(reason="no session token")

    async def sign_in(self, code: str, cookies: CookieJar) -> str:
        """Run the GitHub sign-in flow and return the new session token.

        Raises :class:`ExchangeFailure` or :class:`IdentityFetchFailure`
        from the provider steps; nothing is written in either case.
        """
        github_token = await self._exchanger.exchange_code(code)
        github_id = await self._exchanger.fetch_identity(github_token)

        user = await self._users.upsert_user(github_id)
        user_id = str(user["id"])

        token = self._codec.issue(Claims(user_id=user_id, github_token=github_token))
        cookies.set(self._cookie_name, token)
        logger.info("User %s signed in (github_id=%s)", user_id, github_id)
        return token

    async def sign_out(self, cookies: CookieJar) -> bool:
        """Drop the session cookie.  Always succeeds."""
        cookies.clear(self._cookie_name)
        return True
