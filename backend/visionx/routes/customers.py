# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

# backend/visionx/routes/customers.py
"""
Customer routes.

SECURITY: All routes require authentication.
- Reads require VIEW_CUSTOMERS (clinic roles)
- Create/update require MANAGE_CUSTOMERS
- Delete requires DELETE_CUSTOMERS (admin only); it cascades the
  customer's appointments, eye tests and prescriptions
"""

from flask import Blueprint, jsonify, g, current_app

from . import json_body
from ..services import customer_service
from ..validation import NotFoundError, ValidationError
from ..decorators import require_auth, require_permission


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    """Newest first."""
    customers = customer_service.list_customers()
    return jsonify([c.to_dict() for c in customers])


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return customer.to_dict()


@customers_bp.get("/<int:customer_id>/history")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def customer_history_route(customer_id: int):
    try:
        return customer_service.customer_history(customer_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@customers_bp.post("")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    payload = json_body()

    try:
        customer = customer_service.create_customer(payload, actor_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return {"error": "Internal server error"}, 500

    return customer.to_dict(), 201


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def update_customer_route(customer_id: int):
    payload = json_body()

    try:
        customer = customer_service.update_customer(customer_id, payload, actor_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return customer.to_dict()


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("DELETE_CUSTOMERS")
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete customer")
        return {"error": "Internal server error"}, 500

    return {"message": "Customer deleted"}
