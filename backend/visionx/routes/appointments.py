# Overview: Flask API routes for appointments; parses input and returns JSON responses.

# backend/visionx/routes/appointments.py
"""
Appointment routes.

- GET requires VIEW_APPOINTMENTS (clinic roles)
- POST requires BOOK_APPOINTMENT; a patient may only book for the customer
  record linked to their email
- PATCH writes status only and requires UPDATE_APPOINTMENT_STATUS. The
  lifecycle is enforced only when ENFORCE_APPOINTMENT_TRANSITIONS is on.
"""

from flask import Blueprint, jsonify, g, current_app

from . import json_body
from ..permissions import ROLE_PATIENT
from ..services import activity_service, appointment_service
from ..services.access_service import resolve_patient_customer
from ..validation import ConflictError, NotFoundError, ValidationError
from ..decorators import require_auth, require_permission


appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointments_bp.get("")
@require_auth
@require_permission("VIEW_APPOINTMENTS")
def list_appointments_route():
    """Ordered by date, then time."""
    appointments = appointment_service.list_appointments()
    return jsonify([a.to_dict() for a in appointments])


@appointments_bp.post("")
@require_auth
@require_permission("BOOK_APPOINTMENT")
def create_appointment_route():
    payload = json_body()
    user = g.current_user

    if user.role == ROLE_PATIENT:
        customer = resolve_patient_customer(user)
        requested = payload.get("customer_id")
        if customer is None or (requested is not None and str(requested) != str(customer.id)):
            current_app.logger.warning(
                "Patient %s tried to book for customer %s", user.id, requested
            )
            activity_service.record_activity(user.id, "ACCESS_DENIED", f"book appointment for customer {requested}")
            return {"error": "Forbidden"}, 403
        payload = {**payload, "customer_id": customer.id}

    try:
        appointment = appointment_service.create_appointment(payload, actor_id=user.id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to create appointment")
        return {"error": "Internal server error"}, 500

    return appointment.to_dict(), 201


@appointments_bp.patch("/<int:appointment_id>")
@require_auth
@require_permission("UPDATE_APPOINTMENT_STATUS")
def update_status_route(appointment_id: int):
    payload = json_body()

    try:
        appointment = appointment_service.set_status(
            appointment_id,
            payload.get("status"),
            enforce=current_app.config["ENFORCE_APPOINTMENT_TRANSITIONS"],
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return appointment.to_dict()
