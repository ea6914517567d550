# Overview: Service-layer operations for user notifications.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Notification, User
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_notification,
    require_int,
    validate_payload,
)
from .access_service import find_patient_user


NOTIFICATION_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "title", "message", "category"},
    required_on_create={"user_id", "title", "message"},
    aliases={"type": "category"},
)


def list_for_user(user_id: int, *, unread_only: bool = False) -> list[Notification]:
    query = db.session.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def create_notification(
    user_id: int,
    title: str,
    message: str,
    category: str = "info",
    *,
    commit: bool = True,
) -> Notification:
    enforce_rules_notification({"category": category})
    notification = Notification(user_id=user_id, title=title, message=message, category=category)
    db.session.add(notification)
    if commit:
        db.session.commit()
    return notification


def send_notification(payload: dict) -> Notification:
    """Admin-facing create; validates the payload and the target user."""
    if isinstance(payload, dict) and "user_id" in payload:
        payload = {**payload, "user_id": require_int(payload["user_id"], "user_id")}
    patch = validate_payload(model=Notification, payload=payload, policy=NOTIFICATION_POLICY, partial=False)
    enforce_rules_notification(patch)
    if db.session.get(User, patch["user_id"]) is None:
        raise ValidationError("user_id does not reference an existing user")
    return create_notification(
        patch["user_id"], patch["title"], patch["message"], patch.get("category") or "info"
    )


def notify_customer(customer: Customer, title: str, message: str, category: str, *, commit: bool = True) -> Notification | None:
    """Notify the patient account behind a customer, if one is linked by email."""
    user = find_patient_user(customer)
    if user is None:
        return None
    return create_notification(user.id, title, message, category, commit=commit)


def mark_read(user_id: int, notification_id: int) -> Notification:
    notification = db.session.query(Notification).filter_by(id=notification_id, user_id=user_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.session.commit()
    return notification


def mark_all_read(user_id: int) -> int:
    count = (
        db.session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.commit()
    return count
