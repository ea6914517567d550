# backend/visionx/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Catalog reads require VIEW_INVENTORY (every role, patients included)
- Mutations require MANAGE_INVENTORY (admin only)
- Low-stock report requires VIEW_LOW_STOCK

`details` is accepted as an object or a JSON string and always returned as
a JSON-serialized string.
"""
from flask import Blueprint, request, jsonify, g, current_app

from . import json_body
from ..services import inventory_service
from ..validation import NotFoundError, ValidationError
from ..decorators import require_auth, require_permission


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_inventory_route():
    """Optional ?category= (or legacy ?type=) filter."""
    category = request.args.get("category") or request.args.get("type")
    items = inventory_service.list_items(category)
    return jsonify([item.to_dict() for item in items])


@inventory_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_LOW_STOCK")
def low_stock_route():
    threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    items = inventory_service.low_stock_items(threshold)
    return jsonify({"threshold": threshold, "items": [item.to_dict() for item in items]})


@inventory_bp.get("/<int:item_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_item_route(item_id: int):
    try:
        item = inventory_service.get_item(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return item.to_dict()


@inventory_bp.post("")
@require_auth
@require_permission("MANAGE_INVENTORY")
def create_item_route():
    payload = json_body()

    try:
        item = inventory_service.create_item(payload, actor_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return {"error": "Internal server error"}, 500

    return item.to_dict(), 201


@inventory_bp.patch("/<int:item_id>")
@require_auth
@require_permission("MANAGE_INVENTORY")
def update_item_route(item_id: int):
    payload = json_body()

    try:
        item = inventory_service.update_item(item_id, payload, actor_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return item.to_dict()


@inventory_bp.delete("/<int:item_id>")
@require_auth
@require_permission("MANAGE_INVENTORY")
def delete_item_route(item_id: int):
    try:
        inventory_service.delete_item(item_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"message": "Item deleted"}
