# Overview: Service-layer operations for appointments; encapsulates business logic and database work.

"""
Appointment status policy

Historical behaviour is permissive: PATCH writes whatever non-blank status
string it is given. With ENFORCE_APPOINTMENT_TRANSITIONS enabled, only the
lifecycle below is accepted and anything else raises InvalidTransitionError:

    pending  -> approved | cancelled
    approved -> completed
    completed, cancelled: terminal
"""

from __future__ import annotations

from ..extensions import db
from ..models import APPOINTMENT_STATUSES, Appointment, Customer
from ..time_utils import parse_iso_date
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_int,
    validate_payload,
)
from . import activity_service, notification_service


ALLOWED_TRANSITIONS = {
    "pending": {"approved", "cancelled"},
    "approved": {"completed"},
    "completed": set(),
    "cancelled": set(),
}

APPOINTMENT_POLICY = ModelValidationPolicy(
    writable_fields={"customer_id", "date", "time", "notes"},
    required_on_create={"customer_id", "date", "time"},
)


class InvalidTransitionError(ConflictError):
    """Status change not allowed by the appointment lifecycle."""


def list_appointments() -> list[Appointment]:
    return (
        db.session.query(Appointment)
        .join(Customer, Appointment.customer_id == Customer.id)
        .order_by(Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc())
        .all()
    )


def get_appointment(appointment_id: int) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


def create_appointment(payload: dict, *, actor_id: int | None = None) -> Appointment:
    if isinstance(payload, dict) and payload.get("customer_id") is not None:
        payload = {**payload, "customer_id": require_int(payload["customer_id"], "customer_id")}
    patch = validate_payload(model=Appointment, payload=payload, policy=APPOINTMENT_POLICY, partial=False)

    try:
        parse_iso_date(patch["date"])
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")

    customer = db.session.get(Customer, patch["customer_id"])
    if customer is None:
        raise NotFoundError("Customer not found")

    appointment = Appointment(status="pending", **patch)
    db.session.add(appointment)
    db.session.flush()
    activity_service.record_activity(
        actor_id, "APPOINTMENT_CREATED", f"Appointment #{appointment.id} for customer #{customer.id}", commit=False
    )
    notification_service.notify_customer(
        customer,
        "Appointment requested",
        f"Your appointment on {appointment.date} at {appointment.time} is pending confirmation.",
        "appointment",
        commit=False,
    )
    db.session.commit()
    return appointment


def check_transition(current: str, new_status: str) -> None:
    if new_status not in APPOINTMENT_STATUSES:
        raise InvalidTransitionError(
            f"status must be one of: {', '.join(APPOINTMENT_STATUSES)}"
        )
    if new_status == current:
        return
    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot move appointment from {current} to {new_status}")


def set_status(appointment_id: int, new_status, *, enforce: bool = False, actor_id: int | None = None) -> Appointment:
    """
    Write a new status.

    enforce=False reproduces the unconditional write; enforce=True applies
    ALLOWED_TRANSITIONS.
    """
    if not isinstance(new_status, str) or not new_status.strip():
        raise ValidationError("status is required")
    new_status = new_status.strip()

    appointment = get_appointment(appointment_id)
    previous = appointment.status
    if enforce:
        check_transition(previous, new_status)

    appointment.status = new_status
    activity_service.record_activity(
        actor_id, "APPOINTMENT_STATUS_CHANGED", f"Appointment #{appointment.id}: {previous} -> {new_status}", commit=False
    )
    if previous != new_status and appointment.customer is not None:
        notification_service.notify_customer(
            appointment.customer,
            "Appointment update",
            f"Your appointment on {appointment.date} at {appointment.time} is now {new_status}.",
            "appointment",
            commit=False,
        )
    db.session.commit()
    return appointment


def appointments_on(day: str) -> int:
    return db.session.query(Appointment).filter(Appointment.date == day).count()
