"""HTTP access log middleware -- emits structured METRIC lines.

Captures every non-skipped HTTP request/response cycle with method, path,
status code, wall time, user identity (from the session cookie, no DB
call), request ID, and error detail on 4xx/5xx responses.

Writes to the ``gitsession.access`` logger.
"""

from __future__ import annotations

import json
import logging
import time

from starlette.requests import cookie_parser
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from sessionauth.auth import get_token_codec
from sessionauth.config import settings
from sessionauth.errors import VerificationFailure

logger = logging.getLogger("gitsession.access")

_SKIP_PREFIXES = frozenset({"/health", "/favicon.ico"})


class AccessLogMiddleware:
    """ASGI middleware that logs every HTTP request as a structured METRIC line."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path: str = scope.get("path", "")
        if any(path.startswith(p) for p in _SKIP_PREFIXES):
            await self.app(scope, receive, send)
            return

        method: str = scope.get("method", "?")
        request_id: str = scope.get("state", {}).get("request_id", "-")
        user_id = _extract_user(scope)
        t0 = time.perf_counter()
        status_code = 0
        error_detail = ""

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, error_detail
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body" and status_code >= 400:
                body_bytes = message.get("body", b"")
                if body_bytes:
                    try:
                        body = json.loads(body_bytes)
                        error_detail = str(
                            body.get("detail", body.get("error", ""))
                        )[:200]
                    except (ValueError, AttributeError):
                        pass
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            # Unhandled exception before response was sent -- treat as 500.
            if status_code == 0:
                status_code = 500
            raise
        finally:
            wall_ms = (time.perf_counter() - t0) * 1000
            _emit(method, path, status_code, wall_ms, user_id, request_id, error_detail)


def _extract_user(scope: Scope) -> str:
    """Verify the session cookie without a DB call.

    Returns a user id prefix, ``"anon"`` for a signed token without a
    user, or ``"-"`` when there is no valid session.
    """
    headers = dict(scope.get("headers", []))
    raw = headers.get(b"cookie", b"").decode("latin-1")
    token = cookie_parser(raw).get(settings.SESSION_COOKIE_NAME) if raw else None
    if not token:
        return "-"
    try:
        claims = get_token_codec().verify(token)
    except VerificationFailure:
        return "-"
    return claims.user_id[:8] if claims.user_id else "anon"


def _emit(
    method: str,
    path: str,
    status_code: int,
    wall_ms: float,
    user_id: str,
    request_id: str,
    error_detail: str,
) -> None:
    """Emit a structured METRIC line for the HTTP request."""
    parts = [
        "METRIC | type=http_request",
        f"method={method}",
        f"path={path}",
        f"status={status_code}",
        f"wall_ms={wall_ms:.0f}",
        f"user={user_id}",
        f"req_id={request_id}",
    ]
    if error_detail:
        # Escape pipe chars in error detail to preserve METRIC format
        parts.append(f"error={error_detail.replace('|', '/')}")
    line = " | ".join(parts)

    if status_code >= 500:
        logger.error(line)
    elif status_code >= 400:
        logger.warning(line)
    else:
        logger.info(line)
