# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .permissions import role_has_permission
from .services import activity_service, token_service
from .services.token_service import InvalidTokenError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization") or ""
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.token_claims: The decoded token payload

    Returns 401 {"error": "Unauthorized"} when no bearer token is sent and
    401 {"error": "Invalid token"} when the token cannot be verified.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Unauthorized"}), 401

        try:
            identity = token_service.resolve_identity(token)
        except InvalidTokenError as e:
            current_app.logger.info("Rejected token on %s %s: %s", request.method, request.path, e)
            return jsonify({"error": "Invalid token"}), 401

        g.current_user = identity.user
        g.token_claims = identity.claims

        return f(*args, **kwargs)

    return decorated_function


def _deny(permission_label: str):
    user = g.current_user
    current_app.logger.warning(
        "Access denied: user %s (%s) lacks %s for %s %s",
        user.id, user.role, permission_label, request.method, request.path,
    )
    activity_service.record_activity(
        user.id, "ACCESS_DENIED", f"{request.method} {request.path} requires {permission_label}"
    )
    return jsonify({"error": "Forbidden"}), 403


def require_permission(permission_code: str):
    """
    Require a specific permission, checked against the caller's role.

    Runs after @require_auth: an authenticated caller without the
    permission gets 403, never 401.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Unauthorized"}), 401

            if not role_has_permission(g.current_user.role, permission_code):
                return _deny(permission_code)

            return f(*args, **kwargs)

        return decorated_function
    return decorator

