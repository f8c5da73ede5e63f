"""
Canonical response shape for memos returned over MCP.
"""

from __future__ import annotations

from memos_core.validators import MEMO_NAME_PREFIX

PROPERTY_FLAGS = ("has_link", "has_task_list", "has_code", "has_incomplete_tasks")


def memo_name(uid: str) -> str:
    return f"{MEMO_NAME_PREFIX}{uid}"


def user_name(user_id: int) -> str:
    return f"users/{user_id}"


def _property_json(payload: dict):
    prop = payload.get("property") or {}
    flags = {flag: bool(prop.get(flag, False)) for flag in PROPERTY_FLAGS}
    if not any(flags.values()):
        return None
    return flags


def memo_to_json(memo) -> dict:
    payload = memo.payload or {}
    result = {
        "name": memo_name(memo.uid),
        "creator": user_name(memo.creator_id),
        "create_time": memo.created_ts,
        "update_time": memo.updated_ts,
    }
    if memo.content:
        result["content"] = memo.content
    result.update({
        "visibility": memo.visibility,
        "tags": list(payload.get("tags") or []),
        "pinned": bool(memo.pinned),
        "state": memo.row_status,
    })
    prop = _property_json(payload)
    if prop is not None:
        result["property"] = prop
    if memo.parent_uid:
        result["parent"] = memo_name(memo.parent_uid)
    return result


def format_memo_markdown(memo_json: dict) -> str:
    """Render a serialized memo as a front-matter header plus the raw body."""
    lines = [
        "---",
        f"name: {memo_json['name']}",
        f"creator: {memo_json['creator']}",
        f"visibility: {memo_json['visibility']}",
        f"state: {memo_json['state']}",
        f"pinned: {'true' if memo_json['pinned'] else 'false'}",
    ]
    if memo_json.get("tags"):
        lines.append(f"tags: [{', '.join(memo_json['tags'])}]")
    lines.append(f"create_time: {memo_json['create_time']}")
    lines.append(f"update_time: {memo_json['update_time']}")
    if memo_json.get("parent"):
        lines.append(f"parent: {memo_json['parent']}")
    lines.append("---")
    return "\n".join(lines) + "\n\n" + memo_json.get("content", "")
