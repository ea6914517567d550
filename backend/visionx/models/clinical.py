from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


APPOINTMENT_STATUSES = ("pending", "approved", "completed", "cancelled")


class Appointment(db.Model):
    """
    Scheduled visit for a customer.

    STATUS: pending -> approved -> completed, or pending -> cancelled.
    The order is only enforced when ENFORCE_APPOINTMENT_TRANSITIONS is on.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        db.Index("ix_appointments_date_time", "date", "time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False)   # YYYY-MM-DD
    time = db.Column(db.String(16), nullable=False)   # free text, e.g. "10:00 AM"
    status = db.Column(db.String(32), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "date": self.date,
            "time": self.time,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class EyeTest(db.Model):
    """
    Diagnostic record.

    results is an opaque JSON blob stored verbatim. Its shape depends on the
    producer; see eye_test_service.decode_results for the two known variants.
    """
    __tablename__ = "eye_tests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    results = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "date": to_utc_z(self.date),
            "results": self.results,
            "image_url": self.image_url,
        }


class Prescription(db.Model):
    """
    Clinical prescription, distinct from an eye test.

    Optical values are free text ("-2.50", "+0.75") and are not parsed.
    OD = right eye, OS = left eye.
    """
    __tablename__ = "prescriptions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    issued_on = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD

    od_spherical = db.Column(db.String(16), nullable=True)
    od_cylindrical = db.Column(db.String(16), nullable=True)
    od_axis = db.Column(db.String(16), nullable=True)
    os_spherical = db.Column(db.String(16), nullable=True)
    os_cylindrical = db.Column(db.String(16), nullable=True)
    os_axis = db.Column(db.String(16), nullable=True)

    pd = db.Column(db.String(16), nullable=True)
    addition = db.Column(db.String(16), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    doctor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "issued_on": self.issued_on,
            "right_eye": {
                "spherical": self.od_spherical,
                "cylindrical": self.od_cylindrical,
                "axis": self.od_axis,
            },
            "left_eye": {
                "spherical": self.os_spherical,
                "cylindrical": self.os_cylindrical,
                "axis": self.os_axis,
            },
            "pd": self.pd,
            "addition": self.addition,
            "notes": self.notes,
            "doctor_id": self.doctor_id,
            "created_at": to_utc_z(self.created_at),
        }
