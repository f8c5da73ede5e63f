"""
Shared configuration for the Memos MCP layer.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("memos_mcp")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_list(env_name: str) -> list[str]:
    value = os.environ.get(env_name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


SERVICE_NAME = "Memos"
SERVICE_VERSION = "1.0.0"

# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "sqlite").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/memos.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Schema is owned by the main service; only create tables for standalone/dev use
AUTO_CREATE_TABLES = _get_bool("AUTO_CREATE_TABLES", True)

# Pagination
DEFAULT_PAGE_SIZE = _get_int("MEMOS_MCP_DEFAULT_PAGE_SIZE", 20)
MAX_PAGE_SIZE = _get_int("MEMOS_MCP_MAX_PAGE_SIZE", 100)
SEARCH_LIMIT = _get_int("MEMOS_MCP_SEARCH_LIMIT", 50)

# Request/input limits
MAX_CONTENT_LENGTH = _get_int("MEMOS_MCP_MAX_CONTENT_LENGTH", 1024 * 1024)
MAX_QUERY_LENGTH = _get_int("MEMOS_MCP_MAX_QUERY_LENGTH", 4000)
MAX_FILTER_LENGTH = _get_int("MEMOS_MCP_MAX_FILTER_LENGTH", 4000)
MAX_NAME_LENGTH = _get_int("MEMOS_MCP_MAX_NAME_LENGTH", 256)

# Auth
REQUIRE_MCP_AUTH = _get_bool("REQUIRE_MCP_AUTH", False)
ACCESS_TOKEN_PREFIX = os.environ.get("MEMOS_MCP_TOKEN_PREFIX", "memos_pat_")

# HTTP host
CORS_ALLOWED_ORIGINS = _get_list("CORS_ALLOWED_ORIGINS") or ["*"]
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = _get_int("PORT", 8081)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        is_sqlite_url = DATABASE_URL.lower().startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if not 1 <= DEFAULT_PAGE_SIZE <= MAX_PAGE_SIZE:
        errors.append("MEMOS_MCP_DEFAULT_PAGE_SIZE must be between 1 and MEMOS_MCP_MAX_PAGE_SIZE")
    if SEARCH_LIMIT <= 0:
        errors.append("MEMOS_MCP_SEARCH_LIMIT must be positive")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
