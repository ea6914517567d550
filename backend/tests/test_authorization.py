"""
Authorization tests for VisionX.

Verifies:
- Unauthenticated requests return 401
- Patient role denied staff and admin operations (403)
- Staff/doctor roles denied admin-only operations (403)
- Patient-only portal is closed to clinic roles
- Denials are written to the activity log
"""

import pytest

from visionx.models import ActivityLog

from conftest import auth_headers


PROTECTED_ROUTES = [
    ("GET", "/api/auth/me"),
    ("GET", "/api/customers"),
    ("POST", "/api/customers"),
    ("DELETE", "/api/customers/1"),
    ("GET", "/api/inventory"),
    ("POST", "/api/inventory"),
    ("DELETE", "/api/inventory/1"),
    ("GET", "/api/appointments"),
    ("POST", "/api/appointments"),
    ("PATCH", "/api/appointments/1"),
    ("GET", "/api/eye-tests"),
    ("POST", "/api/customers/test"),
    ("POST", "/api/eye-tests/diagnose"),
    ("GET", "/api/patient/appointments"),
    ("GET", "/api/patient/tests"),
    ("GET", "/api/patient/prescriptions"),
    ("GET", "/api/cart"),
    ("POST", "/api/cart"),
    ("DELETE", "/api/cart/1"),
    ("GET", "/api/notifications"),
    ("PATCH", "/api/notifications/1/read"),
    ("GET", "/api/analytics"),
    ("GET", "/api/analytics/eye-conditions"),
    ("GET", "/api/analytics/demographics"),
    ("GET", "/api/activity-logs"),
    ("GET", "/api/admin/users"),
    ("POST", "/api/billing"),
    ("POST", "/api/chat"),
]

ADMIN_GATED_ROUTES = [
    ("GET", "/api/customers"),
    ("POST", "/api/customers"),
    ("DELETE", "/api/customers/1"),
    ("POST", "/api/inventory"),
    ("PATCH", "/api/inventory/1"),
    ("DELETE", "/api/inventory/1"),
    ("GET", "/api/inventory/low-stock"),
    ("GET", "/api/appointments"),
    ("PATCH", "/api/appointments/1"),
    ("GET", "/api/eye-tests"),
    ("POST", "/api/customers/test"),
    ("GET", "/api/prescriptions"),
    ("POST", "/api/prescriptions"),
    ("GET", "/api/analytics"),
    ("GET", "/api/analytics/eye-conditions"),
    ("GET", "/api/analytics/demographics"),
    ("GET", "/api/activity-logs"),
    ("GET", "/api/admin/users"),
    ("POST", "/api/admin/users"),
    ("POST", "/api/notifications"),
    ("POST", "/api/billing"),
    ("GET", "/api/billing"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Unauthorized"}

    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_rejects_invalid_token(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path, headers=auth_headers("garbage.token.value"))
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Invalid token"}

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"


# =============================================================================
# PATIENT DENIED STAFF/ADMIN OPERATIONS - 403
# =============================================================================


class TestPatientDenied:

    @pytest.mark.parametrize("method,path", ADMIN_GATED_ROUTES)
    def test_patient_forbidden(self, client, patient_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=patient_headers, json={})
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Forbidden"}

    def test_denial_is_logged(self, client, db_session, patient_user, patient_headers):
        client.get("/api/customers", headers=patient_headers)
        entry = db_session.query(ActivityLog).filter_by(action="ACCESS_DENIED").one()
        assert entry.user_id == patient_user.id
        assert "/api/customers" in entry.details

    def test_patient_can_browse_inventory(self, client, patient_headers):
        assert client.get("/api/inventory", headers=patient_headers).status_code == 200


# =============================================================================
# CLINIC ROLES - ADMIN-ONLY GATES
# =============================================================================


class TestClinicRoles:

    @pytest.mark.parametrize("method,path", [
        ("DELETE", "/api/customers/1"),
        ("POST", "/api/inventory"),
        ("DELETE", "/api/inventory/1"),
        ("GET", "/api/analytics"),
        ("GET", "/api/activity-logs"),
        ("GET", "/api/admin/users"),
        ("POST", "/api/notifications"),
    ])
    def test_staff_denied_admin_only(self, client, staff_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=staff_headers, json={})
        assert resp.status_code == 403

    def test_staff_cannot_write_prescriptions(self, client, staff_headers):
        resp = client.post("/api/prescriptions", headers=staff_headers, json={"customer_id": 1})
        assert resp.status_code == 403

    def test_doctor_cannot_bill(self, client, doctor_headers):
        resp = client.post("/api/billing", headers=doctor_headers, json={})
        assert resp.status_code == 403

    @pytest.mark.parametrize("path", ["/api/customers", "/api/appointments", "/api/eye-tests", "/api/prescriptions"])
    def test_staff_and_doctor_read_clinical_records(self, client, staff_headers, doctor_headers, path):
        assert client.get(path, headers=staff_headers).status_code == 200
        assert client.get(path, headers=doctor_headers).status_code == 200

    @pytest.mark.parametrize("path", ["/api/patient/appointments", "/api/patient/tests", "/api/patient/prescriptions"])
    def test_patient_portal_is_patient_only(self, client, admin_headers, staff_headers, path):
        assert client.get(path, headers=admin_headers).status_code == 403
        assert client.get(path, headers=staff_headers).status_code == 403

    def test_admin_passes_admin_gates(self, client, admin_headers):
        for path in ("/api/customers", "/api/analytics", "/api/activity-logs", "/api/admin/users"):
            assert client.get(path, headers=admin_headers).status_code == 200, path
