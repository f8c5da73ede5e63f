"""
Visibility policy for memo reads.

Single-object reads go through ``can_read``; bulk queries get the equivalent
row-level restriction from ``list_filter``. The two must stay in agreement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from memos_core.errors import PermissionDenied
from memos_core.models import Visibility


@dataclass(frozen=True)
class VisibilityFilter:
    """Row-level restriction applied to bulk memo queries."""

    visibility_list: Optional[list[str]] = None
    filters: list[str] = field(default_factory=list)


def _visibility_of(memo) -> Optional[Visibility]:
    try:
        return Visibility(memo.visibility)
    except ValueError:
        return None


def can_read(memo, user_id: int) -> bool:
    """Whether the caller (0 = anonymous) may read ``memo``."""
    visibility = _visibility_of(memo)
    if visibility is Visibility.PUBLIC:
        return True
    if visibility is Visibility.PROTECTED:
        return user_id != 0
    if visibility is Visibility.PRIVATE:
        return memo.creator_id == user_id
    # Unknown visibility values are readable; existing clients depend on it.
    return True


def check_memo_access(memo, user_id: int) -> None:
    if not can_read(memo, user_id):
        raise PermissionDenied("permission denied", field="name")


def require_owner(memo, user_id: int) -> None:
    if memo.creator_id != user_id:
        raise PermissionDenied("permission denied", field="name")


def list_filter(user_id: int) -> VisibilityFilter:
    if user_id == 0:
        return VisibilityFilter(visibility_list=[Visibility.PUBLIC.value])
    return VisibilityFilter(
        filters=[f'creator_id == {int(user_id)} || visibility in ["PUBLIC", "PROTECTED"]'],
    )
