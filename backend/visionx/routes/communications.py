# Overview: Flask API routes for notifications and the chat assistant.

# backend/visionx/routes/communications.py
"""
Notifications are self-scoped: a user only ever sees or marks their own.
Sending an arbitrary notification is admin-only (SEND_NOTIFICATIONS).

The chat assistant never fails the request: AI errors become a static
fallback reply with 200.
"""

from flask import Blueprint, request, jsonify, g, current_app

from . import json_body
from ..services import ai_service, notification_service
from ..validation import NotFoundError, ValidationError
from ..decorators import require_auth, require_permission


communications_bp = Blueprint("communications", __name__, url_prefix="/api")


@communications_bp.get("/notifications")
@require_auth
def list_notifications_route():
    """Optional ?unread=true."""
    unread_only = request.args.get("unread", "false").lower() == "true"
    notifications = notification_service.list_for_user(g.current_user.id, unread_only=unread_only)
    return jsonify([n.to_dict() for n in notifications])


@communications_bp.patch("/notifications/<int:notification_id>/read")
@require_auth
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_read(g.current_user.id, notification_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return notification.to_dict()


@communications_bp.patch("/notifications/read-all")
@require_auth
def mark_all_read_route():
    updated = notification_service.mark_all_read(g.current_user.id)
    return {"updated": updated}


@communications_bp.post("/notifications")
@require_auth
@require_permission("SEND_NOTIFICATIONS")
def send_notification_route():
    payload = json_body()

    try:
        notification = notification_service.send_notification(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to send notification")
        return {"error": "Internal server error"}, 500

    return notification.to_dict(), 201


@communications_bp.post("/chat")
@require_auth
@require_permission("USE_ASSISTANT")
def chat_route():
    """Request body: {"message": "..."}. Returns {"reply": "..."}."""
    payload = json_body()
    message = payload.get("message")

    if not isinstance(message, str) or not message.strip():
        return {"error": "message is required"}, 400

    return {"reply": ai_service.chat_reply(message.strip())}
