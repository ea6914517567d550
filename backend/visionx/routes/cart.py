# Overview: Flask API routes for the per-user cart and checkout.

# backend/visionx/routes/cart.py
"""
Cart routes.

Every line is scoped to the authenticated user id; another user's line
reads as 404. Checkout turns the cart into a sale in one transaction.
"""

from flask import Blueprint, jsonify, g, current_app

from . import json_body
from ..services import billing_service, cart_service
from ..validation import ConflictError, NotFoundError, ValidationError, require_int
from ..decorators import require_auth, require_permission


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@require_auth
@require_permission("USE_CART")
def get_cart_route():
    lines = cart_service.list_cart(g.current_user.id)
    return jsonify({
        "items": [line.to_dict() for line in lines],
        "subtotal": cart_service.cart_subtotal(lines),
    })


@cart_bp.post("")
@require_auth
@require_permission("USE_CART")
def add_to_cart_route():
    """Request body: {"item_id": 1, "quantity": 1}"""
    payload = json_body()

    try:
        item_id = require_int(payload.get("item_id"), "item_id")
        line = cart_service.add_to_cart(g.current_user.id, item_id, payload.get("quantity", 1))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to add item to cart")
        return {"error": "Internal server error"}, 500

    return line.to_dict(), 201


@cart_bp.patch("/<int:line_id>")
@require_auth
@require_permission("USE_CART")
def update_cart_line_route(line_id: int):
    payload = json_body()

    try:
        line = cart_service.update_quantity(g.current_user.id, line_id, payload.get("quantity"))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return line.to_dict()


@cart_bp.delete("/<int:line_id>")
@require_auth
@require_permission("USE_CART")
def remove_cart_line_route(line_id: int):
    try:
        cart_service.remove_line(g.current_user.id, line_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"message": "Item removed from cart"}


@cart_bp.post("/checkout")
@require_auth
@require_permission("USE_CART")
def checkout_route():
    try:
        sale = billing_service.checkout_cart(
            g.current_user, tax_rate=current_app.config["SALES_TAX_RATE"]
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to checkout cart")
        return {"error": "Internal server error"}, 500

    return {"sale": sale.to_dict()}, 201
