# backend/visionx/routes/billing.py
"""
Counter billing.

Totals are computed server-side from inventory prices; the client sends
only item ids and quantities.
"""

from flask import Blueprint, jsonify, g, current_app

from . import json_body
from ..services import billing_service
from ..validation import ConflictError, NotFoundError, ValidationError
from ..decorators import require_auth, require_permission


billing_bp = Blueprint("billing", __name__, url_prefix="/api/billing")


@billing_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """Request body: {"customer_id": 1, "items": [{"item_id": 1, "quantity": 2}]}"""
    payload = json_body()

    try:
        sale = billing_service.create_counter_sale(
            g.current_user,
            payload.get("customer_id"),
            payload.get("items"),
            tax_rate=current_app.config["SALES_TAX_RATE"],
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return {"error": "Internal server error"}, 500

    return {"sale": sale.to_dict()}, 201


@billing_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    sales = billing_service.list_sales()
    return jsonify([s.to_dict() for s in sales])
