"""Domain exception hierarchy for session authentication.

Services raise these instead of bare ``ValueError`` so that the global
exception handler in ``main.py`` can map them to the correct HTTP status
code without fragile string matching.

``VerificationFailure`` deliberately covers both "no token" and "bad
token": callers that only need a yes/no answer collapse it to ``False``,
callers that need an identity surface it as a 401.
"""


class SessionError(Exception):
    """Base for all domain exceptions."""

    def __init__(self, message: str = "An unexpected error occurred", *, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class SessionConfigError(SessionError):
    """The process is misconfigured (e.g. no signing secret) (500)."""

    def __init__(self, message: str = "Session signing is not configured"):
        super().__init__(message, status_code=500)


class VerificationFailure(SessionError):
    """Session token absent, malformed, tampered with or expired (401).

    ``reason`` is for server-side logs only; the client always sees the
    same message regardless of why verification failed.
    """

    def __init__(self, message: str = "Not signed in", *, reason: str = ""):
        super().__init__(message, status_code=401)
        self.reason = reason or message


class UserLookupMiss(VerificationFailure):
    """Token verified but the referenced user no longer exists (401)."""

    def __init__(self, user_id: str = ""):
        super().__init__("Not signed in", reason=f"user {user_id!r} not found")
        self.user_id = user_id


class ExchangeFailure(SessionError):
    """The provider rejected or failed the code-for-token exchange (502)."""

    def __init__(self, message: str = "Failed to exchange GitHub code"):
        super().__init__(message, status_code=502)


class IdentityFetchFailure(SessionError):
    """The provider identity lookup failed after a good exchange (502)."""

    def __init__(self, message: str = "Failed to fetch GitHub user"):
        super().__init__(message, status_code=502)


class BadRequestError(SessionError):
    """Client sent an invalid request (400)."""

    def __init__(self, message: str = "Bad request"):
        super().__init__(message, status_code=400)


def format_error_response(
    *,
    error: str,
    detail: object = None,
    request_id: str = "",
) -> dict:
    """Build a structured error response dict.

    Parameters
    ----------
    error : str
        Short error title (e.g. ``"Internal Server Error"``).
    detail : object
        Human-readable detail string or validation error list.
    request_id : str
        The request ID for tracing.

    Returns
    -------
    dict
        ``{"error": ..., "detail": ..., "errors": [...], "request_id": ...}``
        -- never a ``data`` key, so a failed operation carries no payload.
    """
    detail = detail if detail is not None else error
    errors = detail if isinstance(detail, list) else [{"message": str(detail)}]
    return {
        "error": error,
        "detail": detail,
        "errors": errors,
        "request_id": request_id,
    }
