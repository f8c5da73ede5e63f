"""
Health endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

import memos_core.config as config
from memos_core.db import DB
from memos_core.mcp import tool_inventory_status


router = APIRouter()


def _check_db_health() -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}
    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "error": type(exc).__name__}
    return {"ok": True, "backend": config.DB_BACKEND}


@router.get("/health")
async def health():
    """Health check endpoint."""
    db_health = _check_db_health()
    tool_inventory = await tool_inventory_status()
    if not db_health.get("ok") or tool_inventory.get("tool_count", 0) == 0:
        raise HTTPException(
            status_code=503,
            detail={"database": db_health, "tool_inventory": tool_inventory},
        )
    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "database": db_health,
        "tool_inventory": tool_inventory,
    }
