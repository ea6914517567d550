# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Appointment, Customer, EyeTest, Prescription, Sale
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    validate_payload,
    enforce_rules_customer,
)
from . import activity_service


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address", "age", "gender"},
    required_on_create={"name"},
)


def list_customers() -> list[Customer]:
    return (
        db.session.query(Customer)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .all()
    )


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def create_customer(payload: dict, *, actor_id: int | None = None) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    enforce_rules_customer(patch)

    customer = Customer(**patch)
    db.session.add(customer)
    db.session.flush()
    activity_service.record_activity(actor_id, "CUSTOMER_CREATED", f"Customer #{customer.id} {customer.name}", commit=False)
    db.session.commit()
    return customer


def update_customer(customer_id: int, payload: dict, *, actor_id: int | None = None) -> Customer:
    customer = get_customer(customer_id)
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    enforce_rules_customer(patch)

    for key, value in patch.items():
        setattr(customer, key, value)
    activity_service.record_activity(actor_id, "CUSTOMER_UPDATED", f"Customer #{customer.id}", commit=False)
    db.session.commit()
    return customer


def delete_customer(customer_id: int, *, actor_id: int | None = None) -> None:
    """
    Delete a customer with its appointments, eye tests and prescriptions.

    Sales keep their lines and totals; only the customer link is cleared.
    """
    customer = get_customer(customer_id)
    db.session.query(Sale).filter(Sale.customer_id == customer.id).update(
        {Sale.customer_id: None}, synchronize_session=False
    )
    name = customer.name
    db.session.delete(customer)
    activity_service.record_activity(actor_id, "CUSTOMER_DELETED", f"Customer #{customer_id} {name}", commit=False)
    db.session.commit()


def customer_history(customer_id: int) -> dict:
    customer = get_customer(customer_id)
    appointments = (
        db.session.query(Appointment)
        .filter_by(customer_id=customer.id)
        .order_by(Appointment.date.desc(), Appointment.time.desc())
        .all()
    )
    eye_tests = (
        db.session.query(EyeTest)
        .filter_by(customer_id=customer.id)
        .order_by(EyeTest.date.desc(), EyeTest.id.desc())
        .all()
    )
    prescriptions = (
        db.session.query(Prescription)
        .filter_by(customer_id=customer.id)
        .order_by(Prescription.issued_on.desc(), Prescription.id.desc())
        .all()
    )
    return {
        "customer": customer.to_dict(),
        "appointments": [a.to_dict() for a in appointments],
        "eye_tests": [t.to_dict() for t in eye_tests],
        "prescriptions": [p.to_dict() for p in prescriptions],
    }
