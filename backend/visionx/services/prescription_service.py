# Overview: Service-layer operations for prescriptions.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Prescription
from ..time_utils import parse_iso_date, today_iso
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_int,
    validate_payload,
)
from . import activity_service, notification_service


PRESCRIPTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id",
        "issued_on",
        "od_spherical",
        "od_cylindrical",
        "od_axis",
        "os_spherical",
        "os_cylindrical",
        "os_axis",
        "pd",
        "addition",
        "notes",
    },
    required_on_create={"customer_id"},
)


def _flatten_eyes(payload: dict) -> dict:
    """
    Accept the nested {"right_eye": {...}, "left_eye": {...}} shape used by
    the UI as well as the flat od_*/os_* column keys.
    """
    flat = {k: v for k, v in payload.items() if k not in ("right_eye", "left_eye")}
    for nested_key, prefix in (("right_eye", "od"), ("left_eye", "os")):
        eye = payload.get(nested_key)
        if eye is None:
            continue
        if not isinstance(eye, dict):
            raise ValidationError(f"{nested_key} must be an object")
        for field in ("spherical", "cylindrical", "axis"):
            if field in eye:
                flat.setdefault(f"{prefix}_{field}", eye[field])
    return flat


def list_prescriptions(customer_id: int | None = None) -> list[Prescription]:
    query = db.session.query(Prescription)
    if customer_id is not None:
        query = query.filter(Prescription.customer_id == customer_id)
    return query.order_by(Prescription.issued_on.desc(), Prescription.id.desc()).all()


def create_prescription(payload: dict, *, doctor_id: int | None = None) -> Prescription:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = _flatten_eyes(payload)
    if payload.get("customer_id") is not None:
        payload["customer_id"] = require_int(payload["customer_id"], "customer_id")
    patch = validate_payload(model=Prescription, payload=payload, policy=PRESCRIPTION_POLICY, partial=False)

    if patch.get("issued_on"):
        try:
            parse_iso_date(patch["issued_on"])
        except ValueError:
            raise ValidationError("issued_on must be YYYY-MM-DD")
    else:
        patch["issued_on"] = today_iso()

    customer = db.session.get(Customer, patch["customer_id"])
    if customer is None:
        raise NotFoundError("Customer not found")

    prescription = Prescription(doctor_id=doctor_id, **patch)
    db.session.add(prescription)
    db.session.flush()
    activity_service.record_activity(
        doctor_id, "PRESCRIPTION_ISSUED", f"Prescription #{prescription.id} for customer #{customer.id}", commit=False
    )
    notification_service.notify_customer(
        customer,
        "New prescription",
        f"A prescription dated {prescription.issued_on} was added to your records.",
        "info",
        commit=False,
    )
    db.session.commit()
    return prescription
