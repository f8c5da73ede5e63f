from memos_core.mcp.server import (
    mcp,
    build_mcp_app,
    tool_inventory_status,
)
from memos_core.mcp.auth_middleware import MCPAuthMiddleware, get_current_context

__all__ = [
    "mcp",
    "build_mcp_app",
    "tool_inventory_status",
    "MCPAuthMiddleware",
    "get_current_context",
]
