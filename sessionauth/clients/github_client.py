"""GitHub API client -- OAuth authorize URL, code exchange, and user identity."""

import logging
from typing import Protocol
from urllib.parse import urlencode

import httpx

from sessionauth.config import settings
from sessionauth.errors import ExchangeFailure, IdentityFetchFailure

logger = logging.getLogger(__name__)

GITHUB_OAUTH_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"

# ── Shared HTTP client (connection pooling) ─────────────────────────────────

_client: httpx.AsyncClient | None = None


def _get_client() -> httpx.AsyncClient:
    """Return (or create) the shared httpx client for GitHub API calls."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=settings.GITHUB_TIMEOUT_SECONDS)
    return _client


async def close_client() -> None:
    """Close the shared HTTP client.  Called during app shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


# ── Helpers ──────────────────────────────────────────────────────────────────


def _auth_headers(access_token: str) -> dict:
    """Return standard GitHub API auth headers."""
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/vnd.github+json",
    }


def authorize_url(client_id: str, redirect_uri: str, scope: str, state: str) -> str:
    """Return the GitHub page the browser is sent to for consent."""
    params = urlencode({
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
        "state": state,
    })
    return f"{GITHUB_OAUTH_URL}?{params}"


async def exchange_code_for_token(
    client_id: str,
    client_secret: str,
    code: str,
) -> str:
    """Exchange an OAuth authorization code for an access token.

    GitHub answers a bad or reused code with HTTP 200 and an ``error``
    field, so a missing ``access_token`` is treated as a failure too.
    """
    client = _get_client()
    response = await client.post(
        GITHUB_TOKEN_URL,
        json={
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
        },
        headers={"Accept": "application/json"},
    )
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError("GitHub token response is not a JSON object")
    token = data.get("access_token")
    if not token:
        error = data.get("error_description", data.get("error", "Unknown error"))
        raise ValueError(f"GitHub OAuth error: {error}")
    return token


async def get_github_user(access_token: str) -> dict:
    """Fetch the authenticated GitHub user profile."""
    client = _get_client()
    response = await client.get(
        GITHUB_USER_URL,
        headers=_auth_headers(access_token),
    )
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict) or data.get("id") is None:
        raise ValueError("GitHub user response has no id")
    return {"github_id": data["id"]}


# ── Exchanger seam used by the session service ───────────────────────────────


class OAuthExchanger(Protocol):
    """The two provider calls sign-in depends on, in the order they run."""

    async def exchange_code(self, code: str) -> str: ...

    async def fetch_identity(self, provider_token: str) -> str: ...


class GitHubExchanger:
    """:class:`OAuthExchanger` backed by the GitHub OAuth app credentials.

    Every transport error, timeout, non-2xx status or unusable body is
    reported as :class:`ExchangeFailure` / :class:`IdentityFetchFailure`.
    Nothing is retried: an authorization code is single-use.
    """

    def __init__(self, client_id: str, client_secret: str) -> None:
        self._client_id = client_id
        self._client_secret = client_secret

    async def exchange_code(self, code: str) -> str:
        try:
            return await exchange_code_for_token(
                client_id=self._client_id,
                client_secret=self._client_secret,
                code=code,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GitHub code exchange failed: %s", exc)
            raise ExchangeFailure() from exc

    async def fetch_identity(self, provider_token: str) -> str:
        try:
            user = await get_github_user(provider_token)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GitHub user lookup failed: %s", exc)
            raise IdentityFetchFailure() from exc
        return str(user["github_id"])


def get_exchanger() -> GitHubExchanger:
    """Build the exchanger from the process-wide settings."""
    return GitHubExchanger(settings.GITHUB_CLIENT_ID, settings.GITHUB_CLIENT_SECRET)
