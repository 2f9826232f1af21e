"""User repository -- database reads and writes for the users table."""

from typing import Protocol
from uuid import UUID

from sessionauth.repos.db import get_pool


class UserStore(Protocol):
    """The user-record operations the session service needs."""

    async def get_user(self, user_id: str) -> dict | None: ...

    async def upsert_user(self, github_id: str) -> dict: ...


def _row_to_user(row) -> dict:
    user = dict(row)
    user["id"] = str(user["id"])
    return user


async def upsert_user(github_id: str) -> dict:
    """Create the user for *github_id*, or touch the existing one. Returns the user row as a dict."""
    pool = await get_pool()
    row = await pool.fetchrow(
        """
        INSERT INTO users (github_id, updated_at)
        VALUES ($1, now())
        ON CONFLICT (github_id) DO UPDATE SET
            updated_at = now()
        RETURNING id, github_id, created_at, updated_at
        """,
        github_id,
    )
    return _row_to_user(row)


async def get_user_by_id(user_id: str) -> dict | None:
    """Fetch a user by primary key. Returns None if not found."""
    try:
        key = UUID(user_id)
    except ValueError:
        # Not one of our ids, so no such user.
        return None
    pool = await get_pool()
    row = await pool.fetchrow(
        "SELECT id, github_id, created_at, updated_at FROM users WHERE id = $1",
        key,
    )
    return _row_to_user(row) if row else None


class PgUserStore:
    """:class:`UserStore` over the Postgres ``users`` table."""

    async def get_user(self, user_id: str) -> dict | None:
        return await get_user_by_id(user_id)

    async def upsert_user(self, github_id: str) -> dict:
        return await upsert_user(github_id)
