"""
Standalone FastAPI app wiring for the Memos MCP layer.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import memos_core.config as config
from memos_core.db import DB, dispose_db, init_db
from memos_core.mcp import build_mcp_app
from memos_app.routes.health import router as health_router
from memos_app.routes.root import router as root_router

mcp_stream_app = build_mcp_app()


class MCPRouteNormalizerASGI:
    """Pure ASGI middleware - no response buffering, SSE-safe."""
    def __init__(self, wrapped_app):
        self.wrapped_app = wrapped_app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope.get("path") == "/mcp":
            scope = dict(scope)
            scope["path"] = "/mcp/"
            scope["raw_path"] = b"/mcp/"
        await self.wrapped_app(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    if DB.engine is None:
        init_db()
    try:
        async with mcp_stream_app.lifespan(mcp_stream_app):
            yield
    finally:
        dispose_db()


def create_app() -> FastAPI:
    app = FastAPI(title="Memos MCP", redirect_slashes=False, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(root_router)
    app.mount("/mcp/", mcp_stream_app)
    return app


app = create_app()

# =============================================================================
# ASGI Application (module-level for production deployment)
# =============================================================================

asgi_app = MCPRouteNormalizerASGI(app)
