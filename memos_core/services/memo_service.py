"""
Memo tool services: list, get, create, update, delete, search and comments.

Each function is one request/response with no state carried between calls.
Failures come back as error payloads (see ``service_tool``) so the calling
MCP session keeps running.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional

from memos_core.config import (
    MAX_CONTENT_LENGTH,
    MAX_FILTER_LENGTH,
    MAX_QUERY_LENGTH,
)
from memos_core.context import RequestContext, require_user_id, resolve_user_id
from memos_core.errors import NotFound, StoreFailure, ValidationIssue
from memos_core.models import MemoRelationType, Visibility
from memos_core.policy import can_read, check_memo_access, require_owner
from memos_core.query import (
    Pagination,
    build_comment_query,
    build_list_query,
    build_search_query,
)
from memos_core.serializers import memo_name, memo_to_json
from memos_core.services.shared import logger, memo_store, service_tool
from memos_core.store import MemoDraft, MemoRelationRecord, UpdateMemo
from memos_core.tags import build_payload, extract_tags
from memos_core.validators import (
    parse_memo_uid,
    parse_row_status,
    parse_visibility,
    validate_optional_text,
    validate_required_text,
)

UPDATABLE_STRING_FIELDS = ("content", "visibility", "state")


def new_memo_uid() -> str:
    return uuid.uuid4().hex


def supplied_update_fields(arguments: Mapping[str, Any]) -> dict:
    """Return only the fields the caller actually asked to change.

    String fields cannot tell "leave unchanged" from "set to empty", so an
    empty string counts as not supplied. ``pinned`` is supplied whenever it is
    present, which lets callers explicitly unpin with ``False``.
    """
    supplied = {}
    for key in UPDATABLE_STRING_FIELDS:
        value = arguments.get(key)
        if value is None or value == "":
            continue
        supplied[key] = value
    if arguments.get("pinned") is not None:
        supplied["pinned"] = arguments["pinned"]
    return supplied


def _get_memo_or_raise(store, uid: str):
    memo = store.get_memo(uid=uid)
    if memo is None:
        raise NotFound("memo not found", field="name")
    return memo


def _retag_payload(payload: Optional[dict], content: str) -> dict:
    updated = dict(payload or {})
    tags = extract_tags(content)
    if tags:
        updated["tags"] = tags
    else:
        updated.pop("tags", None)
    return updated


@service_tool
def list_memos(
    page_size: Optional[int] = None,
    page: Optional[int] = None,
    state: Optional[str] = None,
    order_by_pinned: bool = False,
    filter_expr: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """List memos visible to the caller, one page at a time."""
    user_id = resolve_user_id(context)
    validate_optional_text(filter_expr, "filter", MAX_FILTER_LENGTH)
    pagination = Pagination.from_args(page_size, page)
    find = build_list_query(
        user_id,
        pagination,
        state=state,
        order_by_pinned=order_by_pinned,
        filter_expr=filter_expr,
    )

    with memo_store() as store:
        memos = store.find_memos(find)

    memos, has_more = pagination.paginate(memos)
    return {
        "memos": [memo_to_json(memo) for memo in memos],
        "has_more": has_more,
    }


@service_tool
def get_memo(name: str, context: Optional[RequestContext] = None) -> dict:
    user_id = resolve_user_id(context)
    uid = parse_memo_uid(name)
    with memo_store() as store:
        memo = _get_memo_or_raise(store, uid)
    check_memo_access(memo, user_id)
    return memo_to_json(memo)


@service_tool
def create_memo(
    content: str,
    visibility: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    user_id = require_user_id(context)
    validate_required_text(content, "content", MAX_CONTENT_LENGTH)
    visibility_value = parse_visibility(visibility or Visibility.PRIVATE.value)

    with memo_store() as store:
        memo = store.create_memo(
            MemoDraft(
                uid=new_memo_uid(),
                creator_id=user_id,
                content=content,
                visibility=visibility_value.value,
                payload=build_payload(content),
            )
        )

    logger.info(
        "memo_created",
        extra={"uid": memo.uid, "creator_id": user_id, "visibility": memo.visibility},
    )
    return memo_to_json(memo)


@service_tool
def update_memo(
    name: str,
    content: Optional[str] = None,
    visibility: Optional[str] = None,
    pinned: Optional[bool] = None,
    state: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Apply a partial update; only supplied fields change."""
    user_id = require_user_id(context)
    uid = parse_memo_uid(name)
    supplied = supplied_update_fields(
        {"content": content, "visibility": visibility, "pinned": pinned, "state": state}
    )

    with memo_store() as store:
        memo = _get_memo_or_raise(store, uid)
        require_owner(memo, user_id)

        update = UpdateMemo(id=memo.id)
        if "content" in supplied:
            validate_required_text(supplied["content"], "content", MAX_CONTENT_LENGTH)
            update.content = supplied["content"]
            update.payload = _retag_payload(memo.payload, update.content)
        if "visibility" in supplied:
            update.visibility = parse_visibility(supplied["visibility"]).value
        if "state" in supplied:
            update.row_status = parse_row_status(supplied["state"]).value
        if "pinned" in supplied:
            if not isinstance(supplied["pinned"], bool):
                raise ValidationIssue("pinned must be a boolean", field="pinned", error_type="invalid_type")
            update.pinned = supplied["pinned"]

        store.update_memo(update)
        updated = store.get_memo(id=memo.id)

    if updated is None:
        raise NotFound("memo not found", field="name")
    logger.info(
        "memo_updated",
        extra={"uid": uid, "user_id": user_id, "fields": sorted(supplied)},
    )
    return memo_to_json(updated)


@service_tool
def delete_memo(name: str, context: Optional[RequestContext] = None) -> dict:
    user_id = require_user_id(context)
    uid = parse_memo_uid(name)

    with memo_store() as store:
        memo = _get_memo_or_raise(store, uid)
        require_owner(memo, user_id)
        store.delete_memo(memo.id)

    logger.info("memo_deleted", extra={"uid": uid, "user_id": user_id})
    return {"deleted": True, "name": memo_name(uid)}


@service_tool
def search_memos(query: str, context: Optional[RequestContext] = None) -> dict:
    user_id = resolve_user_id(context)
    validate_required_text(query, "query", MAX_QUERY_LENGTH)

    with memo_store() as store:
        memos = store.find_memos(build_search_query(user_id, query))

    return {"memos": [memo_to_json(memo) for memo in memos]}


@service_tool
def list_memo_comments(name: str, context: Optional[RequestContext] = None) -> dict:
    """List comments on a memo, dropping any the caller may not read."""
    user_id = resolve_user_id(context)
    uid = parse_memo_uid(name)

    with memo_store() as store:
        parent = _get_memo_or_raise(store, uid)
        check_memo_access(parent, user_id)

        relations = store.list_memo_relations(
            related_memo_id=parent.id,
            type=MemoRelationType.COMMENT.value,
        )
        if not relations:
            return {"memos": []}
        comments = store.find_memos(build_comment_query([r.memo_id for r in relations]))

    return {
        "memos": [memo_to_json(memo) for memo in comments if can_read(memo, user_id)],
    }


@service_tool
def create_memo_comment(
    name: str,
    content: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Create a comment memo under ``name`` and link it to its parent.

    The comment always takes the parent's visibility. Creation and linking
    are two store writes; if linking fails the comment memo is deleted again
    so no unlinked comment is left behind.
    """
    user_id = require_user_id(context)
    uid = parse_memo_uid(name)
    validate_required_text(content, "content", MAX_CONTENT_LENGTH)

    with memo_store() as store:
        parent = _get_memo_or_raise(store, uid)
        check_memo_access(parent, user_id)

        comment = store.create_memo(
            MemoDraft(
                uid=new_memo_uid(),
                creator_id=user_id,
                content=content,
                visibility=parent.visibility,
                payload=build_payload(content),
                parent_uid=parent.uid,
            )
        )
        try:
            store.upsert_memo_relation(
                MemoRelationRecord(
                    memo_id=comment.id,
                    related_memo_id=parent.id,
                    type=MemoRelationType.COMMENT.value,
                )
            )
        except StoreFailure:
            _compensate_unlinked_comment(store, comment)
            raise StoreFailure("failed to link comment", field="name")

    logger.info(
        "memo_comment_created",
        extra={"uid": comment.uid, "parent_uid": parent.uid, "creator_id": user_id},
    )
    return memo_to_json(comment)


def _compensate_unlinked_comment(store, comment) -> None:
    try:
        store.delete_memo(comment.id)
    except StoreFailure:
        logger.error(
            "comment_compensation_failed",
            extra={"uid": comment.uid, "parent_uid": comment.parent_uid},
        )
        return
    logger.warning(
        "comment_link_failed_compensated",
        extra={"uid": comment.uid, "parent_uid": comment.parent_uid},
    )
