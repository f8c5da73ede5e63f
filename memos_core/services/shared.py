"""
Shared helpers for memo services.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Callable, Iterator

import memos_core.config as config
from memos_core.db import DB
from memos_core.errors import ServiceError, ValidationIssue
from memos_core.store import MemoStore

logger = config.logger


def _tool_error_payload(tool_name: str, exc: ServiceError) -> dict:
    return {
        "status": "error",
        "error_type": exc.error_kind,
        "tool": tool_name,
        "field": exc.field,
        "message": str(exc),
    }


def _log_service_error(tool_name: str, exc: ServiceError, warn: bool = False) -> None:
    payload = {
        "tool": tool_name,
        "field": exc.field,
        "error_kind": exc.error_kind,
        "error_type": exc.error_type,
        "detail": str(exc),
    }
    if warn:
        logger.warning("tool_error", extra=payload)
    else:
        logger.info("tool_error", extra=payload)


def _tool_error_handler(fn: Callable[..., dict]) -> Callable[..., dict]:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ServiceError as exc:
            _log_service_error(fn.__name__, exc, warn=exc.error_kind == "store_failure")
            return _tool_error_payload(fn.__name__, exc)
        except ValueError as exc:
            issue = ValidationIssue(str(exc), field="unknown", error_type="value_error")
            _log_service_error(fn.__name__, issue, warn=True)
            return _tool_error_payload(fn.__name__, issue)
    return wrapper


def service_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    return _tool_error_handler(fn)


@contextmanager
def memo_store() -> Iterator[MemoStore]:
    """Open a session-scoped store for one call."""
    if DB.SessionLocal is None:
        raise RuntimeError("Database not initialized - SessionLocal is None")
    db = DB.SessionLocal()
    try:
        yield MemoStore(db)
    finally:
        db.close()
