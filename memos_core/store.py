"""
SQLAlchemy-backed memo store.

The access layer only talks to the store through the request objects below,
so the same calls can be served by the main service's own store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import defer

import memos_core.config as config
from memos_core.errors import StoreFailure
from memos_core.filters import compile_filters
from memos_core.models import Memo, MemoRelation, MemoRelationType, MemoTag, RowStatus

logger = config.logger

MAX_INDEXED_TAG_LENGTH = 255


@dataclass
class MemoRecord:
    id: int
    uid: str
    creator_id: int
    content: str
    visibility: str
    row_status: str
    pinned: bool
    created_ts: int
    updated_ts: int
    payload: dict = field(default_factory=dict)
    parent_uid: Optional[str] = None


@dataclass
class MemoDraft:
    uid: str
    creator_id: int
    content: str
    visibility: str
    payload: Optional[dict] = None
    parent_uid: Optional[str] = None


@dataclass
class FindMemo:
    id: Optional[int] = None
    uid: Optional[str] = None
    id_list: Optional[list[int]] = None
    filters: list[str] = field(default_factory=list)
    visibility_list: Optional[list[str]] = None
    row_status: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    order_by_pinned: bool = False
    exclude_content: bool = False
    exclude_comments: bool = False


@dataclass
class UpdateMemo:
    id: int
    content: Optional[str] = None
    visibility: Optional[str] = None
    row_status: Optional[str] = None
    pinned: Optional[bool] = None
    payload: Optional[dict] = None

    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (self.content, self.visibility, self.row_status, self.pinned, self.payload)
        )


@dataclass
class MemoRelationRecord:
    memo_id: int
    related_memo_id: int
    type: str


def _to_record(row: Memo, *, exclude_content: bool = False, parent_uid: Optional[str] = None) -> MemoRecord:
    return MemoRecord(
        id=row.id,
        uid=row.uid,
        creator_id=row.creator_id,
        content="" if exclude_content else (row.content or ""),
        visibility=row.visibility,
        row_status=row.row_status,
        pinned=bool(row.pinned),
        created_ts=row.created_ts,
        updated_ts=row.updated_ts,
        payload=dict(row.payload or {}),
        parent_uid=parent_uid,
    )


def _comment_relation_exists():
    return exists().where(
        MemoRelation.memo_id == Memo.id,
        MemoRelation.type == MemoRelationType.COMMENT.value,
    )


class MemoStore:
    """Memo CRUD and filter queries over one SQLAlchemy session."""

    def __init__(self, db):
        self.db = db

    # -- reads -------------------------------------------------------------

    def find_memos(self, find: FindMemo) -> list[MemoRecord]:
        # Malformed filters are caller errors and must surface before any SQL runs
        clauses = compile_filters(find.filters)
        if find.id_list is not None and not find.id_list:
            return []

        query = self.db.query(Memo)
        if find.id is not None:
            query = query.filter(Memo.id == find.id)
        if find.uid is not None:
            query = query.filter(Memo.uid == find.uid)
        if find.id_list is not None:
            query = query.filter(Memo.id.in_(find.id_list))
        if find.visibility_list is not None:
            query = query.filter(Memo.visibility.in_(find.visibility_list))
        if find.row_status is not None:
            query = query.filter(Memo.row_status == find.row_status)
        if find.exclude_comments:
            query = query.filter(~_comment_relation_exists())
        if clauses:
            query = query.filter(*clauses)
        if find.exclude_content:
            query = query.options(defer(Memo.content))

        order_by = []
        if find.order_by_pinned:
            order_by.append(Memo.pinned.desc())
        order_by.extend([Memo.created_ts.desc(), Memo.id.desc()])
        query = query.order_by(*order_by)

        if find.offset:
            query = query.offset(find.offset)
        if find.limit is not None:
            query = query.limit(find.limit)

        try:
            rows = query.all()
            parents = self._parent_uids([row.id for row in rows])
        except SQLAlchemyError as exc:
            logger.warning("store_query_failed", extra={"error_type": type(exc).__name__})
            raise StoreFailure("failed to list memos") from exc

        return [
            _to_record(row, exclude_content=find.exclude_content, parent_uid=parents.get(row.id))
            for row in rows
        ]

    def get_memo(self, *, uid: Optional[str] = None, id: Optional[int] = None) -> Optional[MemoRecord]:
        if uid is None and id is None:
            raise ValueError("get_memo needs uid or id")
        memos = self.find_memos(FindMemo(uid=uid, id=id, limit=1))
        return memos[0] if memos else None

    def _parent_uids(self, memo_ids: list[int]) -> dict[int, str]:
        if not memo_ids:
            return {}
        rows = (
            self.db.query(MemoRelation.memo_id, Memo.uid)
            .join(Memo, Memo.id == MemoRelation.related_memo_id)
            .filter(MemoRelation.memo_id.in_(memo_ids))
            .filter(MemoRelation.type == MemoRelationType.COMMENT.value)
            .all()
        )
        return {memo_id: uid for memo_id, uid in rows}

    def list_memo_relations(
        self,
        *,
        related_memo_id: Optional[int] = None,
        memo_id: Optional[int] = None,
        type: Optional[str] = None,
    ) -> list[MemoRelationRecord]:
        query = self.db.query(MemoRelation)
        if related_memo_id is not None:
            query = query.filter(MemoRelation.related_memo_id == related_memo_id)
        if memo_id is not None:
            query = query.filter(MemoRelation.memo_id == memo_id)
        if type is not None:
            query = query.filter(MemoRelation.type == type)
        try:
            rows = query.order_by(MemoRelation.memo_id.asc()).all()
        except SQLAlchemyError as exc:
            raise StoreFailure("failed to list relations") from exc
        return [
            MemoRelationRecord(memo_id=row.memo_id, related_memo_id=row.related_memo_id, type=row.type)
            for row in rows
        ]

    # -- writes ------------------------------------------------------------

    def create_memo(self, draft: MemoDraft) -> MemoRecord:
        now = int(time.time())
        row = Memo(
            uid=draft.uid,
            creator_id=draft.creator_id,
            content=draft.content,
            visibility=draft.visibility,
            row_status=RowStatus.NORMAL.value,
            pinned=False,
            payload=dict(draft.payload or {}),
            created_ts=now,
            updated_ts=now,
        )
        try:
            self.db.add(row)
            self.db.flush()
            self._sync_tags(row.id, row.payload.get("tags") or [])
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailure("failed to create memo") from exc
        # Parent linkage is stored as a relation; echo it back for the caller
        return _to_record(row, parent_uid=draft.parent_uid)

    def update_memo(self, update: UpdateMemo) -> None:
        if not update.has_changes():
            return
        try:
            row = self.db.query(Memo).filter(Memo.id == update.id).first()
            if row is None:
                raise StoreFailure(f"memo {update.id} no longer exists")
            if update.content is not None:
                row.content = update.content
            if update.visibility is not None:
                row.visibility = update.visibility
            if update.row_status is not None:
                row.row_status = update.row_status
            if update.pinned is not None:
                row.pinned = update.pinned
            if update.payload is not None:
                row.payload = dict(update.payload)
                self._sync_tags(row.id, update.payload.get("tags") or [])
            row.updated_ts = int(time.time())
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailure("failed to update memo") from exc

    def delete_memo(self, memo_id: int) -> None:
        try:
            self.db.query(MemoTag).filter(MemoTag.memo_id == memo_id).delete(synchronize_session=False)
            self.db.query(MemoRelation).filter(
                or_(MemoRelation.memo_id == memo_id, MemoRelation.related_memo_id == memo_id)
            ).delete(synchronize_session=False)
            self.db.query(Memo).filter(Memo.id == memo_id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailure("failed to delete memo") from exc

    def upsert_memo_relation(self, relation: MemoRelationRecord) -> MemoRelationRecord:
        try:
            self.db.merge(
                MemoRelation(
                    memo_id=relation.memo_id,
                    related_memo_id=relation.related_memo_id,
                    type=relation.type,
                )
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailure("failed to upsert memo relation") from exc
        return relation

    def _sync_tags(self, memo_id: int, tags: list[str]) -> None:
        self.db.query(MemoTag).filter(MemoTag.memo_id == memo_id).delete(synchronize_session=False)
        for tag in dict.fromkeys(tags):
            if len(tag) <= MAX_INDEXED_TAG_LENGTH:
                self.db.add(MemoTag(memo_id=memo_id, tag=tag))
