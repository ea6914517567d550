# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory Invariants

- stock is a mutable on-hand count and may never go negative (CHECK
  constraint plus the conditional UPDATE in decrement_stock).
- details is a JSON attribute bag stored as a serialized string. Clients may
  send an object or a string; reads always return the string.
- Adding to a cart does not reserve or check stock. Stock only moves on
  checkout/billing (see billing_service).
"""

from __future__ import annotations

from ..extensions import db
from ..models import InventoryItem
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_inventory,
    normalize_json_text,
    validate_payload,
)
from . import activity_service


INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={"category", "brand", "model", "price", "stock", "image_url", "details"},
    required_on_create={"category", "price"},
    aliases={"type": "category"},
)


def _clean(payload: dict, *, partial: bool) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    has_details = "details" in payload
    details = payload.pop("details", None)

    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=partial)
    if has_details:
        patch["details"] = normalize_json_text(details, "details")
    enforce_rules_inventory(patch)
    return patch


def list_items(category: str | None = None) -> list[InventoryItem]:
    query = db.session.query(InventoryItem)
    if category:
        query = query.filter(InventoryItem.category == category)
    return query.order_by(InventoryItem.id.asc()).all()


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError("Item not found")
    return item


def create_item(payload: dict, *, actor_id: int | None = None) -> InventoryItem:
    patch = _clean(payload, partial=False)
    patch.setdefault("stock", 0)
    item = InventoryItem(**patch)
    db.session.add(item)
    db.session.flush()
    activity_service.record_activity(
        actor_id, "INVENTORY_CREATED", f"Item #{item.id} {item.brand or ''} {item.model or ''}".strip(), commit=False
    )
    db.session.commit()
    return item


def update_item(item_id: int, payload: dict, *, actor_id: int | None = None) -> InventoryItem:
    item = get_item(item_id)
    patch = _clean(payload, partial=True)
    for key, value in patch.items():
        setattr(item, key, value)
    activity_service.record_activity(actor_id, "INVENTORY_UPDATED", f"Item #{item.id}", commit=False)
    db.session.commit()
    return item


def delete_item(item_id: int, *, actor_id: int | None = None) -> None:
    """Delete an item; cart lines pointing at it go with it."""
    item = get_item(item_id)
    db.session.delete(item)
    activity_service.record_activity(actor_id, "INVENTORY_DELETED", f"Item #{item_id}", commit=False)
    db.session.commit()


def low_stock_items(threshold: int) -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.stock < threshold)
        .order_by(InventoryItem.stock.asc(), InventoryItem.id.asc())
        .all()
    )


def decrement_stock(item_id: int, quantity: int) -> None:
    """
    Atomically take quantity units out of stock, flooring at zero.

    Does not commit: the caller owns the transaction. Raises ConflictError
    when fewer than quantity units are on hand, leaving stock untouched.
    """
    if quantity < 1:
        raise ValidationError("quantity must be >= 1")
    updated = (
        db.session.query(InventoryItem)
        .filter(InventoryItem.id == item_id, InventoryItem.stock >= quantity)
        .update({InventoryItem.stock: InventoryItem.stock - quantity}, synchronize_session=False)
    )
    if updated != 1:
        if db.session.get(InventoryItem, item_id) is None:
            raise NotFoundError(f"Item {item_id} not found")
        raise ConflictError(f"Insufficient stock for item {item_id}")
