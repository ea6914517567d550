# Overview: Ownership rules for patient self-service surfaces.

"""
Patient Ownership Gate

A patient User and its Customer record are linked ONLY by email equality.
There is no foreign key and no unique constraint on customers.email; the
link is resolved by value on every request.

FAIL CLOSED: when no Customer matches, every "my records" read returns an
empty collection. It never raises and never falls back to another record.
When several customers share the email, the oldest record (lowest id) is
the patient's record.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Appointment, Customer, EyeTest, Prescription, User
from ..permissions import ROLE_PATIENT


def resolve_patient_customer(user: User) -> Customer | None:
    email = (user.email or "").strip()
    if not email:
        return None
    return (
        db.session.query(Customer)
        .filter(Customer.email == email)
        .order_by(Customer.id.asc())
        .first()
    )


def patient_appointments(user: User) -> list[Appointment]:
    customer = resolve_patient_customer(user)
    if customer is None:
        return []
    return (
        db.session.query(Appointment)
        .filter(Appointment.customer_id == customer.id)
        .order_by(Appointment.date.desc(), Appointment.time.desc())
        .all()
    )


def patient_eye_tests(user: User) -> list[EyeTest]:
    customer = resolve_patient_customer(user)
    if customer is None:
        return []
    return (
        db.session.query(EyeTest)
        .filter(EyeTest.customer_id == customer.id)
        .order_by(EyeTest.date.desc(), EyeTest.id.desc())
        .all()
    )


def patient_prescriptions(user: User) -> list[Prescription]:
    customer = resolve_patient_customer(user)
    if customer is None:
        return []
    return (
        db.session.query(Prescription)
        .filter(Prescription.customer_id == customer.id)
        .order_by(Prescription.issued_on.desc(), Prescription.id.desc())
        .all()
    )


def find_patient_user(customer: Customer) -> User | None:
    """Reverse lookup used to notify the patient behind a customer record."""
    email = (customer.email or "").strip()
    if not email:
        return None
    return db.session.query(User).filter(User.email == email, User.role == ROLE_PATIENT).first()
