from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import INVENTORY_CATEGORIES, NOTIFICATION_CATEGORIES
from .permissions import VALID_ROLES, validate_role


# Upper bound for a single item price; rejects nonsensical values
MAX_PRICE = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: the record does not exist in the caller's scope."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., insufficient stock)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - aliases: alternate client keys mapped onto column keys
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    aliases: dict[str, str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Floats / decimals (prices)
    if isinstance(coltype, (Float, Numeric)):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                raise ValidationError(f"{col.key} must be a finite number")
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        else:
            raise ValidationError(f"{col.key} must be a number")
        # NaN and Infinity slip past range checks
        if not math.isfinite(number):
            raise ValidationError(f"{col.key} must be a finite number")
        return number

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    aliases = policy.aliases or {}
    normalized: dict = {}
    for k, v in payload.items():
        key = aliases.get(k, k)
        # Canonical key wins over an alias
        if key in normalized and k != key:
            continue
        normalized[key] = v

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if normalized.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in normalized.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in normalized.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def normalize_json_text(value: Any, field: str) -> str | None:
    """
    Accept a JSON object or an already-serialized JSON string and return the
    serialized form stored in Text columns.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            json.loads(value)
        except ValueError:
            raise ValidationError(f"{field} must be valid JSON")
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    raise ValidationError(f"{field} must be a JSON object")


def enforce_rules_inventory(patch: dict) -> None:
    if "category" in patch and patch["category"] is not None:
        if patch["category"] not in INVENTORY_CATEGORIES:
            raise ValidationError(f"category must be one of: {', '.join(INVENTORY_CATEGORIES)}")

    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")

    if "stock" in patch and patch["stock"] is not None:
        if patch["stock"] < 0:
            raise ValidationError("stock must be >= 0")


def enforce_rules_customer(patch: dict) -> None:
    age = patch.get("age")
    if age is not None and (age < 0 or age > 150):
        raise ValidationError("age must be between 0 and 150")


def enforce_rules_quantity(quantity: Any) -> int:
    """Cart/sale quantities are plain integers >= 1."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        if isinstance(quantity, str) and quantity.strip().isdecimal():
            quantity = int(quantity.strip())
        else:
            raise ValidationError("quantity must be an integer")
    if quantity < 1:
        raise ValidationError("quantity must be >= 1")
    return quantity


def enforce_rules_notification(patch: dict) -> None:
    category = patch.get("category")
    if category is not None and category not in NOTIFICATION_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(NOTIFICATION_CATEGORIES)}")


def enforce_rules_role(role: Any) -> str:
    if not isinstance(role, str) or not validate_role(role):
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    return role


def require_int(value: Any, field: str) -> int:
    """Parse an id-like field that clients sometimes send as a string."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer")
