"""
Memos MCP access layer: memos, comments and tags exposed to agents over MCP.
"""
