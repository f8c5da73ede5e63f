"""
Tag aggregation across the memos a caller can see.
"""

from __future__ import annotations

from collections import Counter
from typing import Optional

from memos_core.context import RequestContext, resolve_user_id
from memos_core.query import build_tag_query
from memos_core.services.shared import memo_store, service_tool


def count_tags(memos) -> list[dict]:
    """Tag counts sorted by count descending, then tag ascending."""
    counts: Counter = Counter()
    for memo in memos:
        for tag in (memo.payload or {}).get("tags") or []:
            counts[tag] += 1
    entries = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"tag": tag, "count": count} for tag, count in entries]


@service_tool
def list_tags(context: Optional[RequestContext] = None) -> dict:
    user_id = resolve_user_id(context)
    with memo_store() as store:
        memos = store.find_memos(build_tag_query(user_id))
    return {"tags": count_tags(memos)}
