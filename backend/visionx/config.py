# backend/visionx/config.py
from __future__ import annotations
import os


DEV_JWT_SECRET = "visionx-dev-secret-change-me"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


class Config:
    APP_ENV = os.environ.get("APP_ENV", "development")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Token signing. None means "not supplied"; create_app decides whether the
    # development default may be used.
    JWT_SECRET = os.environ.get("JWT_SECRET")
    JWT_ALGORITHM = "HS256"
    # Unset -> tokens never expire
    JWT_EXPIRES_HOURS = float(os.environ["JWT_EXPIRES_HOURS"]) if os.environ.get("JWT_EXPIRES_HOURS") else None

    # SQLite DB stored next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///visionx.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # External AI collaborator (Gemini REST API)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    GEMINI_BASE_URL = os.environ.get("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    GEMINI_DIAGNOSIS_MODEL = os.environ.get("GEMINI_DIAGNOSIS_MODEL", "gemini-3.1-pro-preview")
    GEMINI_CHAT_MODEL = os.environ.get("GEMINI_CHAT_MODEL", "gemini-3-flash-preview")
    AI_TIMEOUT_SECONDS = _env_float("AI_TIMEOUT_SECONDS", 30.0)
    AI_MAX_RETRIES = int(os.environ.get("AI_MAX_RETRIES", "1"))

    # False keeps the historical "any status may be written" behaviour
    ENFORCE_APPOINTMENT_TRANSITIONS = _env_bool("ENFORCE_APPOINTMENT_TRANSITIONS", False)

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))
    SALES_TAX_RATE = _env_float("SALES_TAX_RATE", 0.18)  # GST

    ADMIN_NAME = os.environ.get("ADMIN_NAME", "Admin User")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@visionx.com")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }


class TestConfig(Config):
    APP_ENV = "testing"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET = "test-jwt-secret"
    BCRYPT_ROUNDS = 4
    JWT_EXPIRES_HOURS = None
    GEMINI_API_KEY = "test-key"
    AI_TIMEOUT_SECONDS = 1.0
    AI_MAX_RETRIES = 1
    ENFORCE_APPOINTMENT_TRANSITIONS = False
