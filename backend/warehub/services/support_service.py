# Overview: Service-layer operations for support comments.

from __future__ import annotations

from ..extensions import db
from ..models import SupportComment, User
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from warehub.time_utils import utcnow


class SupportCommentNotFoundError(ValueError):
    pass


COMMENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "message"},
    required_on_create={"name", "email", "message"},
)


def create_comment(user: User, payload: dict | None) -> SupportComment:
    payload = payload if isinstance(payload, dict) else {}
    if any(not str(payload.get(f) or "").strip() for f in ("name", "email", "message")):
        raise ValidationError("Name, email, and message are required")

    patch = validate_payload(
        model=SupportComment,
        payload=payload,
        policy=COMMENT_POLICY,
        partial=False,
    )
    comment = SupportComment(user_id=user.id, created_at=utcnow(), **patch)
    db.session.add(comment)
    db.session.commit()
    return comment


def list_comments() -> list[SupportComment]:
    """Newest first."""
    return (
        db.session.query(SupportComment)
        .order_by(SupportComment.created_at.desc(), SupportComment.id.desc())
        .all()
    )


def delete_comment(comment_id: int) -> None:
    comment = db.session.get(SupportComment, comment_id)
    if not comment:
        raise SupportCommentNotFoundError("Comment not found")
    db.session.delete(comment)
    db.session.commit()
