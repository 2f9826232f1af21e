"""Tests for the Starlette cookie jar adapter."""

from fastapi import Depends, FastAPI, Response
from fastapi.testclient import TestClient

from sessionauth.api.cookies import RequestCookieJar
from sessionauth.api.deps import get_cookie_jar


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/read")
    async def _read(cookies: RequestCookieJar = Depends(get_cookie_jar)) -> dict:
        return {"token": cookies.get("token")}

    @app.post("/write")
    async def _write(cookies: RequestCookieJar = Depends(get_cookie_jar)) -> dict:
        cookies.set("token", "abc")
        return {}

    @app.post("/clear")
    async def _clear(cookies: RequestCookieJar = Depends(get_cookie_jar)) -> dict:
        cookies.clear("token")
        return {}

    return app


def test_get_reads_request_cookie():
    client = TestClient(_app())
    assert client.get("/read").json() == {"token": None}
    client.cookies.set("token", "xyz")
    assert client.get("/read").json() == {"token": "xyz"}


def test_set_writes_http_only_cookie_with_max_age(monkeypatch):
    monkeypatch.setattr("sessionauth.config.settings.COOKIE_MAX_AGE_DAYS", 2)
    monkeypatch.setattr("sessionauth.config.settings.COOKIE_SECURE", True)
    monkeypatch.setattr("sessionauth.config.settings.COOKIE_SAMESITE", "strict")

    header = TestClient(_app()).post("/write").headers["set-cookie"].lower()

    assert header.startswith("token=abc")
    assert "httponly" in header
    assert "secure" in header
    assert "samesite=strict" in header
    assert f"max-age={2 * 86400}" in header


def test_set_without_max_age_is_session_cookie(monkeypatch):
    monkeypatch.setattr("sessionauth.config.settings.COOKIE_MAX_AGE_DAYS", 0)
    header = TestClient(_app()).post("/write").headers["set-cookie"].lower()
    assert "max-age" not in header


def test_clear_expires_cookie():
    header = TestClient(_app()).post("/clear").headers["set-cookie"].lower()
    assert header.startswith("token=")
    assert "max-age=0" in header


def test_adapter_uses_given_response():
    response = Response()

    class _Request:
        cookies = {"token": "t1"}

    jar = RequestCookieJar(_Request(), response)  # type: ignore[arg-type]
    jar.set("token", "t2")
    assert jar.get("token") == "t1"
    assert any(h.startswith("token=t2") for h in response.headers.getlist("set-cookie"))
