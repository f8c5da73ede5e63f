"""
Shared validation helpers for Memos services.
"""

from __future__ import annotations

from typing import Optional

from memos_core.config import MAX_NAME_LENGTH
from memos_core.errors import ValidationIssue
from memos_core.models import (
    ROW_STATUS_VALUES,
    VISIBILITY_VALUES,
    RowStatus,
    Visibility,
)

MEMO_NAME_PREFIX = "memos/"


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or value == "":
        raise ValidationIssue(f"{field} is required", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def parse_memo_uid(name: str, field: str = "name") -> str:
    """Extract the uid from a ``memos/<uid>`` resource name."""
    if not isinstance(name, str) or not name.startswith(MEMO_NAME_PREFIX):
        raise ValidationIssue(
            f'memo name must be in the format "memos/<uid>", got {name!r}',
            field=field,
            error_type="invalid_name",
        )
    uid = name[len(MEMO_NAME_PREFIX):]
    if not uid:
        raise ValidationIssue(
            f'memo name must be in the format "memos/<uid>", got {name!r}',
            field=field,
            error_type="invalid_name",
        )
    if len(uid) > MAX_NAME_LENGTH:
        raise ValidationIssue(f"{field} exceeds max length {MAX_NAME_LENGTH}", field=field, error_type="max_length")
    return uid


def parse_visibility(value: str, field: str = "visibility") -> Visibility:
    if value not in VISIBILITY_VALUES:
        raise ValidationIssue(
            f"visibility must be PRIVATE, PROTECTED, or PUBLIC; got {value!r}",
            field=field,
            error_type="invalid_enum",
        )
    return Visibility(value)


def parse_row_status(value: str, field: str = "state") -> RowStatus:
    if value not in ROW_STATUS_VALUES:
        raise ValidationIssue(
            f"state must be NORMAL or ARCHIVED; got {value!r}",
            field=field,
            error_type="invalid_enum",
        )
    return RowStatus(value)


def coerce_int(value, field: str, default: int) -> int:
    """Accept integral numbers (JSON numbers may arrive as floats)."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationIssue(f"{field} must be a number", field=field, error_type="invalid_type")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
        return int(value)
    if not isinstance(value, int):
        raise ValidationIssue(f"{field} must be a number", field=field, error_type="invalid_type")
    return value
