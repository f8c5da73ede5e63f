"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import memos_core.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "description": "MCP access layer for Memos notes",
        "endpoints": {
            "health": "/health",
            "mcp": "/mcp",
        },
    }
