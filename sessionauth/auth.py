"""JWT encode/decode utilities for session management."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from sessionauth.config import settings
from sessionauth.errors import SessionConfigError, VerificationFailure

ALGORITHM = "HS256"

# Payload keys are shared with tokens already issued to browsers; do not rename.
_USER_ID_KEY = "userId"
_GITHUB_TOKEN_KEY = "gitHubToken"


@dataclass(frozen=True)
class Claims:
    """The identity carried inside a session token."""

    user_id: str | None = None
    github_token: str | None = None

    def to_payload(self) -> dict:
        payload: dict = {}
        if self.user_id is not None:
            payload[_USER_ID_KEY] = self.user_id
        if self.github_token is not None:
            payload[_GITHUB_TOKEN_KEY] = self.github_token
        return payload

    @classmethod
    def from_payload(cls, payload: dict) -> "Claims":
        user_id = payload.get(_USER_ID_KEY)
        github_token = payload.get(_GITHUB_TOKEN_KEY)
        for key, value in ((_USER_ID_KEY, user_id), (_GITHUB_TOKEN_KEY, github_token)):
            if value is not None and not isinstance(value, str):
                raise VerificationFailure(reason=f"claim {key!r} is not a string")
        return cls(user_id=user_id, github_token=github_token)


class TokenCodec:
    """Signs and verifies session tokens with a fixed HMAC secret.

    The codec holds no mutable state; one instance is safe to share
    across concurrent requests.

    Args:
        secret: HMAC signing key.  Must be non-empty.
        algorithm: JWT algorithm (HMAC family).
        expiry_hours: Lifetime of issued tokens.  ``0`` omits the ``exp``
            claim entirely, matching sessions that end only on sign-out.
    """

    def __init__(self, secret: str, *, algorithm: str = ALGORITHM, expiry_hours: int = 0) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expiry_hours = expiry_hours

    @property
    def expires(self) -> bool:
        return self._expiry_hours > 0

    def issue(self, claims: Claims) -> str:
        """Sign *claims* and return the compact JWT string."""
        if not self._secret:
            raise SessionConfigError("APP_SECRET is not set")
        now = datetime.now(timezone.utc)
        payload = claims.to_payload()
        payload["iat"] = now
        if self.expires:
            payload["exp"] = now + timedelta(hours=self._expiry_hours)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> Claims:
        """Decode and validate *token*.

        Raises :class:`VerificationFailure` when the token is absent or
        empty, malformed, signed with another key, expired, or carries
        claims of the wrong type.  All cases raise the same exception type.
        """
        if not token:
            raise VerificationFailure(reason="no session token")
        if not self._secret:
            # Never accept a token when there is no key to check it against.
            raise VerificationFailure(reason="APP_SECRET is not set")

        options: dict = {"require": ["exp"]} if self.expires else {}
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options=options,
            )
        except jwt.ExpiredSignatureError:
            raise VerificationFailure(reason="session token expired")
        except jwt.PyJWTError as exc:
            raise VerificationFailure(reason=f"invalid session token: {exc}")
        return Claims.from_payload(payload)


def get_token_codec() -> TokenCodec:
    """Build a codec from the process-wide settings."""
    return TokenCodec(
        settings.APP_SECRET,
        expiry_hours=settings.TOKEN_EXPIRY_HOURS,
    )
