"""
Resolve ``memo://memos/{uid}`` resources into Markdown documents.
"""

from __future__ import annotations

from typing import Optional

from memos_core.context import RequestContext, resolve_user_id
from memos_core.errors import NotFound, ResourceResolutionError, ServiceError
from memos_core.policy import check_memo_access
from memos_core.serializers import format_memo_markdown, memo_to_json
from memos_core.services.shared import memo_store

MEMO_URI_PREFIX = "memo://memos/"
MEMO_URI_TEMPLATE = MEMO_URI_PREFIX + "{uid}"
MEMO_MIME_TYPE = "text/markdown"


def memo_uri(uid: str) -> str:
    return f"{MEMO_URI_PREFIX}{uid}"


def parse_memo_uri(uri: str) -> str:
    if not isinstance(uri, str) or not uri.startswith(MEMO_URI_PREFIX):
        raise ResourceResolutionError(f"invalid memo URI {uri!r}: expected memo://memos/<uid>")
    uid = uri[len(MEMO_URI_PREFIX):]
    if not uid:
        raise ResourceResolutionError(f"invalid memo URI {uri!r}: expected memo://memos/<uid>")
    return uid


def read_memo_resource(uri: str, context: Optional[RequestContext] = None) -> str:
    user_id = resolve_user_id(context)
    uid = parse_memo_uri(uri)
    try:
        with memo_store() as store:
            memo = store.get_memo(uid=uid)
        if memo is None:
            raise NotFound(f"memo not found: {uid}", field="uri")
        check_memo_access(memo, user_id)
    except ServiceError as exc:
        raise ResourceResolutionError.from_service_error(exc) from exc
    return format_memo_markdown(memo_to_json(memo))
