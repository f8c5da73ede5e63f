"""
MCP authentication middleware.

Resolves the caller identity from the ``Authorization`` header and binds it
to the request using contextvars (async-safe). Requests without the header
run as anonymous callers unless ``REQUIRE_MCP_AUTH`` is set.
"""

from __future__ import annotations

import json

import memos_core.config as config
from memos_core.auth import verify_authorization_header
from memos_core.context import (
    AuthContext,
    RequestContext,
    get_current_request_context,
    reset_current_request_context,
    set_current_request_context,
)
from memos_core.db import DB


def get_current_context() -> RequestContext:
    """Get current request context, or an anonymous one if not set."""
    return get_current_request_context()


class MCPAuthMiddleware:
    """ASGI middleware that verifies bearer tokens and sets the caller context."""

    def __init__(self, app, require_auth: bool | None = None):
        self.app = app
        self.require_auth = config.REQUIRE_MCP_AUTH if require_auth is None else require_auth

    def __getattr__(self, name):
        return getattr(self.app, name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        authorization = ""
        for header_name, header_value in scope.get("headers", []):
            if header_name.decode("latin1").lower() == "authorization":
                authorization = header_value.decode("latin1")
                break

        if not authorization:
            if self.require_auth:
                await self._send_error(send, 401, "a personal access token is required")
                return
            req_ctx = RequestContext(auth=AuthContext(actor="anonymous"), source="mcp")
        else:
            if DB.SessionLocal is None:
                config.logger.error("mcp_auth_middleware_no_db")
                await self._send_error(send, 500, "Database not initialized")
                return
            db = DB.SessionLocal()
            try:
                user_id = verify_authorization_header(db, authorization)
            except Exception as exc:
                config.logger.error(
                    "mcp_auth_middleware_error",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                await self._send_error(send, 500, "Internal server error")
                return
            finally:
                db.close()

            if user_id is None:
                await self._send_error(send, 401, "invalid or expired token")
                return
            req_ctx = RequestContext(
                auth=AuthContext(user_id=user_id, actor=f"users/{user_id}"),
                source="mcp",
            )

        token = set_current_request_context(req_ctx)
        try:
            await self.app(scope, receive, send)
        finally:
            reset_current_request_context(token)

    async def _send_error(self, send, status_code: int, detail: str):
        """Send JSON error response."""
        body = json.dumps({"message": detail}).encode("utf-8")

        await send({
            "type": "http.response.start",
            "status": status_code,
            "headers": [
                [b"content-type", b"application/json"],
                [b"content-length", str(len(body)).encode("latin1")],
            ],
        })

        await send({
            "type": "http.response.body",
            "body": body,
        })
