# Overview: Service-layer operations for session tokens (signed JWTs).

"""
Session Token Service

The token is the whole session: there is no session table, so logout is a
client-side discard. Tokens carry {id, role, name} and are signed with
JWT_SECRET (HS256).

Tokens do not expire unless JWT_EXPIRES_HOURS is configured.
"""

from dataclasses import dataclass
from datetime import timedelta, timezone

import jwt
from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


class InvalidTokenError(Exception):
    """Raised when a token is corrupt, forged, expired or names no user."""
    pass


@dataclass
class Identity:
    """Authenticated caller attached to the request context."""
    user: User
    claims: dict

    @property
    def role(self) -> str:
        return self.user.role


def _signing_key() -> str:
    return current_app.config["JWT_SECRET"]


def issue_token(user: User) -> str:
    now = utcnow().replace(tzinfo=timezone.utc)
    payload = {
        "id": user.id,
        "role": user.role,
        "name": user.name,
        "iat": now,
    }
    expires_hours = current_app.config.get("JWT_EXPIRES_HOURS")
    if expires_hours:
        payload["exp"] = now + timedelta(hours=float(expires_hours))
    return jwt.encode(payload, _signing_key(), algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str) -> dict:
    try:
        claims = jwt.decode(
            token,
            _signing_key(),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["id"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if not isinstance(claims.get("id"), int):
        raise InvalidTokenError("token id claim must be an integer")
    return claims


def resolve_identity(token: str) -> Identity:
    """
    Verify the token and load the user it names.

    The role used for authorization is the stored one, so role changes
    apply to tokens issued before the change.
    """
    claims = decode_token(token)
    user = db.session.get(User, claims["id"])
    if user is None:
        raise InvalidTokenError("token user no longer exists")
    return Identity(user=user, claims=claims)
