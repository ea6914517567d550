# Overview: Self-service routes for patients.

# backend/visionx/routes/patient.py
"""
Patient portal.

Patient role only. Records are found through the customer whose email
equals the caller's email; with no match every list is empty (never an
error, never someone else's records).
"""

from flask import Blueprint, jsonify, g

from ..services import access_service
from ..decorators import require_auth, require_permission


patient_bp = Blueprint("patient", __name__, url_prefix="/api/patient")


@patient_bp.get("/appointments")
@require_auth
@require_permission("VIEW_PATIENT_PORTAL")
def my_appointments():
    return jsonify([a.to_dict() for a in access_service.patient_appointments(g.current_user)])


@patient_bp.get("/tests")
@require_auth
@require_permission("VIEW_PATIENT_PORTAL")
def my_eye_tests():
    return jsonify([t.to_dict() for t in access_service.patient_eye_tests(g.current_user)])


@patient_bp.get("/prescriptions")
@require_auth
@require_permission("VIEW_PATIENT_PORTAL")
def my_prescriptions():
    return jsonify([p.to_dict() for p in access_service.patient_prescriptions(g.current_user)])
