# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/visionx/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Failed logins never reveal whether the email exists
- Failed logins are logged and written to the activity log
- Tokens are stateless; logout is a client-side discard
"""

from flask import Blueprint, request, jsonify, current_app, g

from . import json_body
from ..services import activity_service, auth_service, token_service
from ..services.auth_service import AuthenticationError, PasswordValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a bearer token.

    Request body: {"email": "...", "password": "..."}
    Returns {"token": "...", "user": {...}} on success, 401 otherwise.
    """
    data = json_body()

    try:
        email = data.get("email")
        password = data.get("password")

        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)

        if not user:
            current_app.logger.warning("Failed login for %s from %s", email, request.remote_addr)
            activity_service.record_activity(None, "LOGIN_FAILED", email)
            return jsonify({"error": "Invalid credentials"}), 401

        token = token_service.issue_token(user)
        activity_service.record_activity(user.id, "LOGIN", user.email)

        return jsonify({
            "token": token,
            "user": user.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """
    Tokens are not stored server-side, so there is nothing to revoke.
    The client discards the token.
    """
    activity_service.record_activity(g.current_user.id, "LOGOUT", g.current_user.email)
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.post("/password")
@require_auth
def change_password_route():
    """
    Change own password.

    Request body: {"current_password": "...", "new_password": "..."}
    """
    data = json_body()
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password or not new_password:
        return jsonify({"error": "current_password and new_password required"}), 400

    try:
        auth_service.change_own_password(g.current_user, current_password, new_password)
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Password updated"}), 200
