"""
Translate validated tool arguments into store queries.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

import memos_core.config as config
from memos_core.errors import ValidationIssue
from memos_core.models import RowStatus
from memos_core.policy import list_filter
from memos_core.store import FindMemo
from memos_core.validators import coerce_int, parse_row_status

T = TypeVar("T")

# Offsets are bound as signed 64-bit integers by every supported backend
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class Pagination:
    page_size: int
    page: int

    @classmethod
    def from_args(cls, page_size=None, page=None) -> "Pagination":
        size = coerce_int(page_size, "page_size", config.DEFAULT_PAGE_SIZE)
        if size <= 0:
            size = config.DEFAULT_PAGE_SIZE
        size = min(size, config.MAX_PAGE_SIZE)
        index = max(coerce_int(page, "page", 0), 0)
        if index * size > MAX_OFFSET:
            raise ValidationIssue(
                f"page {index} is out of range for page_size {size}",
                field="page",
                error_type="out_of_range",
            )
        return cls(page_size=size, page=index)

    @property
    def limit(self) -> int:
        # One extra row tells us whether another page exists
        return self.page_size + 1

    @property
    def offset(self) -> int:
        return self.page * self.page_size

    def paginate(self, rows: Sequence[T]) -> tuple[list[T], bool]:
        has_more = len(rows) > self.page_size
        return list(rows[: self.page_size]), has_more


def _apply_visibility(find: FindMemo, user_id: int) -> FindMemo:
    policy = list_filter(user_id)
    if policy.visibility_list is not None:
        find.visibility_list = list(policy.visibility_list)
    find.filters.extend(policy.filters)
    return find


def build_list_query(
    user_id: int,
    pagination: Pagination,
    state: Optional[str] = None,
    order_by_pinned: bool = False,
    filter_expr: Optional[str] = None,
) -> FindMemo:
    row_status = parse_row_status(state) if state else RowStatus.NORMAL
    find = FindMemo(
        exclude_comments=True,
        row_status=row_status.value,
        limit=pagination.limit,
        offset=pagination.offset,
        order_by_pinned=bool(order_by_pinned),
    )
    _apply_visibility(find, user_id)
    if filter_expr:
        find.filters.append(filter_expr)
    return find


def content_contains_filter(query: str) -> str:
    return f"content.contains({json.dumps(query)})"


def build_search_query(user_id: int, query: str) -> FindMemo:
    find = FindMemo(
        exclude_comments=True,
        row_status=RowStatus.NORMAL.value,
        limit=config.SEARCH_LIMIT,
        offset=0,
        filters=[content_contains_filter(query)],
    )
    return _apply_visibility(find, user_id)


def build_tag_query(user_id: int) -> FindMemo:
    find = FindMemo(
        exclude_comments=True,
        exclude_content=True,
        row_status=RowStatus.NORMAL.value,
    )
    return _apply_visibility(find, user_id)


def build_comment_query(comment_ids: Sequence[int]) -> FindMemo:
    return FindMemo(id_list=list(comment_ids))
