from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


NOTIFICATION_CATEGORIES = ("info", "appointment", "order")


class Notification(db.Model):
    """
    Message addressed to one user account.

    is_read only moves false -> true.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_read", "user_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(16), nullable=False, default="info")
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "category": self.category,
            "type": self.category,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
