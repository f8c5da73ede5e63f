"""
Request-scoped context objects for core services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import contextvars

from memos_core.errors import Unauthenticated


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[int] = None
    actor: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.user_id


@dataclass(frozen=True)
class RequestContext:
    auth: AuthContext
    request_id: Optional[str] = None
    source: Optional[str] = None


ANONYMOUS_CONTEXT = RequestContext(auth=AuthContext(actor="anonymous"))

_CURRENT_REQUEST_CONTEXT: contextvars.ContextVar[Optional["RequestContext"]] = contextvars.ContextVar(
    "memos_request_context",
    default=None,
)


def get_current_request_context() -> RequestContext:
    """Return the context bound to this request, or an anonymous one."""
    ctx = _CURRENT_REQUEST_CONTEXT.get()
    if ctx is not None:
        return ctx
    return ANONYMOUS_CONTEXT


def set_current_request_context(context: Optional["RequestContext"]) -> contextvars.Token:
    return _CURRENT_REQUEST_CONTEXT.set(context)


def reset_current_request_context(token: contextvars.Token) -> None:
    _CURRENT_REQUEST_CONTEXT.reset(token)


def resolve_user_id(context: Optional[RequestContext]) -> int:
    """Caller's numeric identity; 0 means anonymous."""
    if context is None or context.auth is None or not context.auth.user_id:
        return 0
    return int(context.auth.user_id)


def require_user_id(context: Optional[RequestContext]) -> int:
    user_id = resolve_user_id(context)
    if user_id == 0:
        raise Unauthenticated(
            "unauthenticated: a personal access token is required",
            field="authorization",
        )
    return user_id


__all__ = [
    "AuthContext",
    "RequestContext",
    "ANONYMOUS_CONTEXT",
    "get_current_request_context",
    "set_current_request_context",
    "reset_current_request_context",
    "resolve_user_id",
    "require_user_id",
]
