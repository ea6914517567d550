from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Customer(db.Model):
    """
    Clinical/commercial subject of the shop.

    email is deliberately NOT unique and NOT a foreign key to users: patient
    ownership is resolved by value (email equality) at request time.

    Deleting a customer removes its appointments, eye tests and prescriptions.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    age = db.Column(db.Integer, nullable=True)
    gender = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    appointments = db.relationship(
        "Appointment", backref="customer", lazy=True, cascade="all, delete-orphan"
    )
    eye_tests = db.relationship(
        "EyeTest", backref="customer", lazy=True, cascade="all, delete-orphan"
    )
    prescriptions = db.relationship(
        "Prescription", backref="customer", lazy=True, cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "age": self.age,
            "gender": self.gender,
            "created_at": to_utc_z(self.created_at),
        }
