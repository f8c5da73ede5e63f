"""
Memos database models.
"""

import time
from enum import Enum as PyEnum

from sqlalchemy import (
    Column, Integer, BigInteger, String, Text, Boolean, DateTime,
    ForeignKey, Index, UniqueConstraint, JSON,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _now_ts() -> int:
    return int(time.time())


# =============================================================================
# Enums
# =============================================================================

class Visibility(str, PyEnum):
    PRIVATE = "PRIVATE"
    PROTECTED = "PROTECTED"
    PUBLIC = "PUBLIC"


class RowStatus(str, PyEnum):
    NORMAL = "NORMAL"
    ARCHIVED = "ARCHIVED"


class MemoRelationType(str, PyEnum):
    REFERENCE = "REFERENCE"
    COMMENT = "COMMENT"


VISIBILITY_VALUES = tuple(v.value for v in Visibility)
ROW_STATUS_VALUES = tuple(s.value for s in RowStatus)


# =============================================================================
# Memos
# =============================================================================

class Memo(Base):
    __tablename__ = "memo"

    id = Column(Integer, primary_key=True)
    uid = Column(String(256), nullable=False, unique=True)
    creator_id = Column(Integer, nullable=False)
    created_ts = Column(BigInteger, nullable=False, default=_now_ts)
    updated_ts = Column(BigInteger, nullable=False, default=_now_ts)
    # Plain strings so rows written by other producers round-trip untouched
    row_status = Column(String(32), nullable=False, default=RowStatus.NORMAL.value)
    visibility = Column(String(32), nullable=False, default=Visibility.PRIVATE.value)
    content = Column(Text, nullable=False, default="")
    pinned = Column(Boolean, nullable=False, default=False)
    payload = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_memo_creator_id", "creator_id"),
        Index("ix_memo_created_ts", "created_ts"),
    )


class MemoRelation(Base):
    __tablename__ = "memo_relation"

    memo_id = Column(Integer, ForeignKey("memo.id", ondelete="CASCADE"), primary_key=True)
    related_memo_id = Column(Integer, ForeignKey("memo.id", ondelete="CASCADE"), primary_key=True)
    type = Column(String(32), primary_key=True, default=MemoRelationType.REFERENCE.value)

    __table_args__ = (
        Index("ix_memo_relation_related", "related_memo_id", "type"),
    )


class MemoTag(Base):
    """Denormalized payload tags so tag filters stay in SQL."""

    __tablename__ = "memo_tag"

    memo_id = Column(Integer, ForeignKey("memo.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String(255), primary_key=True)

    __table_args__ = (
        Index("ix_memo_tag_tag", "tag"),
    )


# =============================================================================
# Access tokens
# =============================================================================

class AccessToken(Base):
    __tablename__ = "access_token"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False)
    token_hash = Column(String(64), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True))
    revoked = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_access_token_hash"),
        Index("ix_access_token_user_id", "user_id"),
    )
