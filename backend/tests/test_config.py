"""
Application factory and configuration tests.
"""

import pytest

from visionx import create_app
from visionx.config import DEV_JWT_SECRET, TestConfig


class ProductionWithoutSecret(TestConfig):
    APP_ENV = "production"
    JWT_SECRET = None


class DevelopmentWithoutSecret(TestConfig):
    APP_ENV = "development"
    JWT_SECRET = None


class TestJwtSecretPolicy:

    def test_production_requires_secret(self):
        with pytest.raises(RuntimeError):
            create_app(ProductionWithoutSecret)

    def test_development_falls_back(self):
        app = create_app(DevelopmentWithoutSecret)
        assert app.config["JWT_SECRET"] == DEV_JWT_SECRET


class TestErrorHandlers:

    def test_unknown_route_is_json_404(self, client, db_session):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not Found"}

    def test_method_not_allowed_is_json(self, client, db_session):
        resp = client.put("/api/auth/login")
        assert resp.status_code == 405
        assert "error" in resp.get_json()

    def test_cors_for_allowed_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_no_cors_for_unknown_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestJsonBodies:

    @pytest.mark.parametrize("path", ["/api/customers", "/api/inventory", "/api/billing", "/api/admin/users"])
    def test_malformed_json_is_rejected(self, client, admin_headers, path):
        resp = client.post(path, data="{bad", content_type="application/json", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid JSON payload"}

    @pytest.mark.parametrize("raw", ["[1]", '"text"', "42", "null"])
    def test_non_object_body_is_rejected(self, client, patient_headers, raw):
        resp = client.post("/api/appointments", data=raw, content_type="application/json", headers=patient_headers)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid JSON payload"}

    def test_malformed_login_body(self, client, db_session):
        resp = client.post("/api/auth/login", data="{bad", content_type="application/json")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid JSON payload"}

    def test_empty_body_reads_as_empty_object(self, client, admin_headers):
        resp = client.post("/api/customers", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] != "Invalid JSON payload"
