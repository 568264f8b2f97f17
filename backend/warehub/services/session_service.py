# Overview: Service-layer operations for session; bearer token issue, validation and revocation.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in the database and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout of SESSION_TTL_DAYS (default 7 days)
- Revocable on logout
- Tracks client IP and user agent
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app, has_app_context

from ..extensions import db
from ..models import SessionToken, User
from warehub.time_utils import utcnow


DEFAULT_SESSION_TTL_DAYS = 7


def generate_token() -> str:
    """64-character hex plaintext token; only its hash is stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _session_ttl() -> timedelta:
    days = DEFAULT_SESSION_TTL_DAYS
    if has_app_context():
        days = int(current_app.config.get("SESSION_TTL_DAYS", DEFAULT_SESSION_TTL_DAYS))
    return timedelta(days=days)


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for the user.

    Returns (session_record, plaintext_token). Raises ValueError if the user
    does not exist.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _session_ttl(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionToken | None:
    """
    Returns the live session for `token`, or None if it is unknown, expired
    or revoked. Updates last_used_at on success.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if not session.user:
        return None

    session.last_used_at = now
    db.session.commit()
    return session


def revoke_session(token: str) -> bool:
    """Returns True if a live session was revoked, False if none matched."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True
