# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing; plaintext secrets are never stored or logged.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters with at least one letter and one digit
- Login failures never reveal whether the email exists
- Session tokens are issued separately (see token_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..permissions import ROLE_ADMIN
from ..time_utils import utcnow
from ..validation import enforce_rules_role, NotFoundError
from . import activity_service


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthenticationError(Exception):
    """Raised when supplied credentials do not match."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor BCRYPT_ROUNDS, default 12).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes and non-string input).
    """
    if not isinstance(password, str) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str) -> str:
    return (email or "").strip()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.id.asc()).all()


def create_user(name: str, email: str, password: str, role: str = "staff", *, actor_id: int | None = None) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValueError: If the email is already registered or name/email blank
        PasswordValidationError: If password doesn't meet requirements
        ValidationError: If role is unknown
    """
    name = (name or "").strip()
    email = _normalize_email(email)
    if not name or not email:
        raise ValueError("name and email are required")
    enforce_rules_role(role)

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ValueError("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    db.session.flush()
    activity_service.record_activity(actor_id, "USER_CREATED", f"{user.email} ({role})", commit=False)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise. The caller cannot
    tell an unknown email from a wrong password.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(User.email == _normalize_email(email)).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def set_user_role(user_id: int, role: str, *, actor_id: int | None = None) -> User:
    enforce_rules_role(role)
    user = get_user(user_id)
    previous = user.role
    user.role = role
    activity_service.record_activity(actor_id, "USER_ROLE_CHANGED", f"{user.email}: {previous} -> {role}", commit=False)
    db.session.commit()
    return user


def set_user_password(user_id: int, new_password: str, *, actor_id: int | None = None) -> User:
    user = get_user(user_id)
    user.password_hash = hash_password(new_password)
    activity_service.record_activity(actor_id, "USER_PASSWORD_CHANGED", user.email, commit=False)
    db.session.commit()
    return user


def change_own_password(user: User, current_password: str, new_password: str) -> User:
    """Raises AuthenticationError when the current password does not match."""
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return set_user_password(user.id, new_password, actor_id=user.id)


def ensure_admin_user(name: str, email: str, password: str) -> tuple[User, bool]:
    """
    Guarantee the admin seed account exists.

    Returns (admin, created). When any admin already exists nothing is
    created, so repeated initialization never adds a second seed admin.
    """
    admin = db.session.query(User).filter_by(role=ROLE_ADMIN).order_by(User.id.asc()).first()
    if admin:
        return admin, False
    return create_user(name, email, password, ROLE_ADMIN), True
