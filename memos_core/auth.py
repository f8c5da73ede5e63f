"""
Personal access token verification.

Tokens are stored as SHA-256 hashes; the raw value is only returned once at
issue time.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import memos_core.config as config
from memos_core.models import AccessToken

BEARER_PREFIX = "bearer "


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def issue_access_token(
    db,
    user_id: int,
    description: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Create a token for ``user_id`` and return its raw value."""
    raw_token = config.ACCESS_TOKEN_PREFIX + secrets.token_urlsafe(32)
    now = datetime.now(timezone.utc)
    db.add(
        AccessToken(
            user_id=user_id,
            token_hash=hash_token(raw_token),
            description=description,
            created_at=now,
            expires_at=now + expires_in if expires_in else None,
        )
    )
    db.commit()
    return raw_token


def _is_expired(expires_at: Optional[datetime]) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        # SQLite drops tzinfo on read
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= datetime.now(timezone.utc)


def verify_access_token(db, raw_token: str) -> Optional[int]:
    """Return the owning user id, or None if the token is unknown/expired/revoked."""
    if not raw_token:
        return None
    row = (
        db.query(AccessToken)
        .filter(AccessToken.token_hash == hash_token(raw_token))
        .first()
    )
    if row is None or row.revoked or _is_expired(row.expires_at):
        return None
    return row.user_id


def verify_authorization_header(db, authorization: str) -> Optional[int]:
    value = (authorization or "").strip()
    if value.lower().startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX):].strip()
    return verify_access_token(db, value)
