from __future__ import annotations

from ..extensions import db
from warehub.time_utils import to_utc_z, utcnow


class SupportComment(db.Model):
    """Feedback left by a signed-in user; reviewed by admins."""
    __tablename__ = "support_comments"
    __table_args__ = (
        db.Index("ix_support_comments_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "createdAt": to_utc_z(self.created_at),
        }
