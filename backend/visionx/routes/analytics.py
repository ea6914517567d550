# backend/visionx/routes/analytics.py
"""
Admin dashboard aggregates. Read-only.
"""

from flask import Blueprint, jsonify, current_app

from ..services import activity_service, analytics_service
from ..decorators import require_auth, require_permission


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api")


@analytics_bp.get("/analytics")
@require_auth
@require_permission("VIEW_ANALYTICS")
def dashboard_route():
    return analytics_service.dashboard_stats(current_app.config["LOW_STOCK_THRESHOLD"])


@analytics_bp.get("/analytics/eye-conditions")
@require_auth
@require_permission("VIEW_ANALYTICS")
def eye_conditions_route():
    """{myopia, hyperopia, astigmatism, normal} counts over all eye tests."""
    return analytics_service.eye_condition_distribution()


@analytics_bp.get("/analytics/demographics")
@require_auth
@require_permission("VIEW_ANALYTICS")
def demographics_route():
    return analytics_service.demographics()


@analytics_bp.get("/activity-logs")
@require_auth
@require_permission("VIEW_ACTIVITY_LOG")
def activity_logs_route():
    """Latest 100 entries, newest first."""
    entries = activity_service.list_recent_activity(limit=100)
    return jsonify([entry.to_dict() for entry in entries])
