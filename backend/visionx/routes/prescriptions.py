# backend/visionx/routes/prescriptions.py
from flask import Blueprint, request, jsonify, g, current_app

from . import json_body
from ..services import prescription_service
from ..validation import NotFoundError, ValidationError, require_int
from ..decorators import require_auth, require_permission


prescriptions_bp = Blueprint("prescriptions", __name__, url_prefix="/api/prescriptions")


@prescriptions_bp.get("")
@require_auth
@require_permission("VIEW_PRESCRIPTIONS")
def list_prescriptions_route():
    customer_id = request.args.get("customer_id")
    if customer_id is not None:
        try:
            customer_id = require_int(customer_id, "customer_id")
        except ValidationError as e:
            return {"error": str(e)}, 400

    prescriptions = prescription_service.list_prescriptions(customer_id)
    return jsonify([p.to_dict() for p in prescriptions])


@prescriptions_bp.post("")
@require_auth
@require_permission("WRITE_PRESCRIPTION")
def create_prescription_route():
    """
    Issue a prescription. Accepts flat od_*/os_* keys or nested
    right_eye/left_eye objects.
    """
    payload = json_body()

    try:
        prescription = prescription_service.create_prescription(payload, doctor_id=g.current_user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to create prescription")
        return {"error": "Internal server error"}, 500

    return prescription.to_dict(), 201
