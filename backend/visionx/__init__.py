# backend/visionx/__init__.py
from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest, HTTPException

from .config import Config, DEV_JWT_SECRET
from .extensions import db, migrate


def _resolve_jwt_secret(app: Flask) -> None:
    if app.config.get("JWT_SECRET"):
        return
    if app.config.get("APP_ENV") == "production":
        raise RuntimeError("JWT_SECRET must be set when APP_ENV=production")
    app.logger.warning("JWT_SECRET not set; using the development signing key")
    app.config["JWT_SECRET"] = DEV_JWT_SECRET


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(BadRequest)
    def handle_bad_request(e):
        return jsonify({"error": "Invalid JSON payload"}), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({"error": e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    _resolve_jwt_secret(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.customers import customers_bp
    from .routes.inventory import inventory_bp
    from .routes.appointments import appointments_bp
    from .routes.eye_tests import eye_tests_bp
    from .routes.prescriptions import prescriptions_bp
    from .routes.patient import patient_bp
    from .routes.cart import cart_bp
    from .routes.billing import billing_bp
    from .routes.communications import communications_bp
    from .routes.analytics import analytics_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(eye_tests_bp)
    app.register_blueprint(prescriptions_bp)
    app.register_blueprint(patient_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(communications_bp)
    app.register_blueprint(analytics_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
