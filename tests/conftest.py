"""Shared test fixtures -- reduces boilerplate across test modules.

Provides:
- ``set_test_config`` -- autouse fixture that patches common settings
- ``TEST_SECRET`` / ``USER_ID`` / ``GITHUB_ID`` -- reusable values
- ``FakeCookies`` / ``FakeUserStore`` / ``FakeExchanger`` -- collaborator doubles
- ``session_manager`` -- a :class:`SessionManager` wired to the doubles
- ``test_client`` -- ``TestClient`` against the app with those doubles injected
"""

import pytest
from fastapi.testclient import TestClient

from sessionauth.api.deps import get_session_manager
from sessionauth.auth import TokenCodec
from sessionauth.errors import ExchangeFailure, IdentityFetchFailure
from sessionauth.main import app
from sessionauth.services.session_service import SessionManager


def pytest_configure(config):
    """Register custom markers.

    Tests that need a real Postgres should be decorated with
    ``@pytest.mark.integration`` and skipped with ``-m 'not integration'``.
    """
    config.addinivalue_line(
        "markers",
        "integration: tests requiring external services (database, GitHub)",
    )


# ---------------------------------------------------------------------------
# Canonical test values
# ---------------------------------------------------------------------------

TEST_SECRET = "test-secret-key-for-unit-tests-0123456789"
USER_ID = "22222222-2222-2222-2222-222222222222"
GITHUB_ID = "99999"
GITHUB_TOKEN = "gho_testtoken123"

MOCK_USER: dict = {"id": USER_ID, "github_id": GITHUB_ID}

# ---------------------------------------------------------------------------
# Environment patching
# ---------------------------------------------------------------------------

_SETTINGS_PATCHES: dict[str, object] = {
    "sessionauth.config.settings.APP_SECRET": TEST_SECRET,
    "sessionauth.config.settings.TOKEN_EXPIRY_HOURS": 0,
    "sessionauth.config.settings.GITHUB_CLIENT_ID": "test-client-id",
    "sessionauth.config.settings.GITHUB_CLIENT_SECRET": "test-client-secret",
    "sessionauth.config.settings.FRONTEND_URL": "http://localhost:5173",
    "sessionauth.config.settings.SESSION_COOKIE_NAME": "token",
}


@pytest.fixture(autouse=True)
def set_test_config(monkeypatch):
    """Patch common application settings for a safe test environment.

    Each test starts from the same secret and ends with the original
    settings restored, whatever the test changed in between.
    """
    for target, value in _SETTINGS_PATCHES.items():
        monkeypatch.setattr(target, value)


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class FakeCookies:
    """In-memory :class:`CookieJar` that records writes and clears."""

    def __init__(self, **cookies: str) -> None:
        self.cookies: dict[str, str] = dict(cookies)
        self.set_calls: list[tuple[str, str]] = []
        self.cleared: list[str] = []

    def get(self, name: str) -> str | None:
        return self.cookies.get(name)

    def set(self, name: str, value: str) -> None:
        self.set_calls.append((name, value))
        self.cookies[name] = value

    def clear(self, name: str) -> None:
        self.cleared.append(name)
        self.cookies.pop(name, None)


class FakeUserStore:
    """In-memory :class:`UserStore`; ``users`` maps id -> user dict."""

    def __init__(self, *users: dict, upsert_result: dict | None = None) -> None:
        self.users: dict[str, dict] = {u["id"]: u for u in users}
        self.upsert_result = upsert_result or MOCK_USER
        self.get_calls: list[str] = []
        self.upsert_calls: list[str] = []

    async def get_user(self, user_id: str) -> dict | None:
        self.get_calls.append(user_id)
        return self.users.get(user_id)

    async def upsert_user(self, github_id: str) -> dict:
        self.upsert_calls.append(github_id)
        self.users[self.upsert_result["id"]] = self.upsert_result
        return self.upsert_result


class FakeExchanger:
    """Scripted :class:`OAuthExchanger`.  ``None`` for a step makes it fail."""

    def __init__(self, token: str | None = GITHUB_TOKEN, github_id: str | None = GITHUB_ID) -> None:
        self.token = token
        self.github_id = github_id
        self.calls: list[tuple[str, str]] = []

    async def exchange_code(self, code: str) -> str:
        self.calls.append(("exchange_code", code))
        if self.token is None:
            raise ExchangeFailure()
        return self.token

    async def fetch_identity(self, provider_token: str) -> str:
        self.calls.append(("fetch_identity", provider_token))
        if self.github_id is None:
            raise IdentityFetchFailure()
        return self.github_id


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def user_store() -> FakeUserStore:
    return FakeUserStore(MOCK_USER)


@pytest.fixture
def exchanger() -> FakeExchanger:
    return FakeExchanger()


@pytest.fixture
def session_manager(codec, exchanger, user_store) -> SessionManager:
    return SessionManager(codec, exchanger, user_store, cookie_name="token")


@pytest.fixture
def test_client(session_manager):
    """A ``TestClient`` whose session service uses the in-memory doubles."""
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_session_manager, None)
