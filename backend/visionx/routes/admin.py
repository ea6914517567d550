# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/visionx/routes/admin.py
"""
Admin routes for user management.

Users are never deleted; they are only created and mutated to change role
or password. All endpoints require MANAGE_USERS.
"""

from flask import Blueprint, jsonify, g, current_app

from . import json_body
from ..services import auth_service
from ..services.auth_service import PasswordValidationError
from ..decorators import require_auth, require_permission
from ..permissions import DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS
from ..validation import NotFoundError, ValidationError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_permission("MANAGE_USERS")
def list_users():
    users = auth_service.list_users()
    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)})


@admin_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user():
    """
    Create a user account.

    Request body: {"name", "email", "password", "role"}
    """
    data = json_body()

    try:
        user = auth_service.create_user(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role") or "staff",
            actor_id=g.current_user.id,
        )
    except (PasswordValidationError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        # Duplicate email
        if "already" in str(e):
            return jsonify({"error": str(e)}), 409
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"user": user.to_dict()}), 201


@admin_bp.patch("/users/<int:user_id>/role")
@require_auth
@require_permission("MANAGE_USERS")
def set_user_role(user_id: int):
    data = json_body()

    try:
        user = auth_service.set_user_role(user_id, data.get("role"), actor_id=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"user": user.to_dict()})


@admin_bp.patch("/users/<int:user_id>/password")
@require_auth
@require_permission("MANAGE_USERS")
def set_user_password(user_id: int):
    data = json_body()

    try:
        user = auth_service.set_user_password(user_id, data.get("password"), actor_id=g.current_user.id)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"user": user.to_dict()})


@admin_bp.get("/roles")
@require_auth
@require_permission("MANAGE_USERS")
def list_roles():
    """Static role -> permission map, for the admin UI."""
    return jsonify({
        "roles": {role: sorted(codes) for role, codes in DEFAULT_ROLE_PERMISSIONS.items()},
        "permissions": [
            {"code": code, "name": name, "description": description, "category": category}
            for code, name, description, category in PERMISSION_DEFINITIONS
        ],
    })
