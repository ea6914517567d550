# Overview: Service-layer operations for sales (counter billing and cart checkout).

"""
Billing

A sale is recorded in ONE transaction: sale header, lines, stock
decrements, cart clearing, notification and activity entry either all
commit or all roll back.

- Prices are read from inventory at sale time; clients never send totals.
- Tax = subtotal * SALES_TAX_RATE, amounts rounded to cents.
- Stock moves through inventory_service.decrement_stock, which refuses to
  go below zero; a short line aborts the whole sale with ConflictError.
- No payment capture happens here.
"""

from __future__ import annotations

from ..extensions import db
from ..models import CartLine, Customer, InventoryItem, Sale, SaleLine, User
from ..validation import NotFoundError, ValidationError, enforce_rules_quantity, require_int
from . import activity_service, notification_service
from .access_service import resolve_patient_customer
from .inventory_service import decrement_stock


def _money(value: float) -> float:
    return round(value, 2)


def _merge_lines(raw_lines) -> list[tuple[int, int]]:
    """Normalize [{item_id, quantity}] and merge repeated items, keeping order."""
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("items must be a non-empty list")

    merged: dict[int, int] = {}
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object")
        # The billing screen posts whole inventory rows, which carry "id"
        item_id = require_int(raw.get("item_id", raw.get("id")), "item_id")
        quantity = enforce_rules_quantity(raw.get("quantity", 1))
        merged[item_id] = merged.get(item_id, 0) + quantity
    return list(merged.items())


def _record_sale(
    *,
    user_id: int,
    customer_id: int | None,
    lines: list[tuple[int, int]],
    source: str,
    tax_rate: float,
) -> Sale:
    sale = Sale(user_id=user_id, customer_id=customer_id, source=source)
    db.session.add(sale)

    subtotal = 0.0
    for item_id, quantity in lines:
        item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found")
        decrement_stock(item_id, quantity)
        line_total = _money(item.price * quantity)
        subtotal += line_total
        sale.lines.append(
            SaleLine(
                item_id=item.id,
                description=" ".join(part for part in (item.brand, item.model) if part) or item.category,
                quantity=quantity,
                unit_price=item.price,
                line_total=line_total,
            )
        )

    sale.subtotal = _money(subtotal)
    sale.tax = _money(subtotal * tax_rate)
    sale.total = _money(sale.subtotal + sale.tax)
    db.session.flush()
    activity_service.record_activity(
        user_id, "SALE_COMPLETED", f"Sale #{sale.id} ({source}) total {sale.total:.2f}", commit=False
    )
    return sale


def create_counter_sale(actor: User, customer_id, raw_lines, *, tax_rate: float) -> Sale:
    """Staff billing for a customer at the counter."""
    lines = _merge_lines(raw_lines)
    customer = db.session.get(Customer, require_int(customer_id, "customer_id"))
    if customer is None:
        raise NotFoundError("Customer not found")

    try:
        sale = _record_sale(
            user_id=actor.id, customer_id=customer.id, lines=lines, source="COUNTER", tax_rate=tax_rate
        )
        notification_service.notify_customer(
            customer, "Order confirmed", f"Thank you! Your order #{sale.id} totals {sale.total:.2f}.", "order", commit=False
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return sale


def checkout_cart(user: User, *, tax_rate: float) -> Sale:
    """
    Turn the caller's cart into a sale.

    The sale is attached to the caller's customer record when the email
    matches one; otherwise it has no customer.
    """
    cart = db.session.query(CartLine).filter_by(user_id=user.id).order_by(CartLine.id.asc()).all()
    if not cart:
        raise ValidationError("Cart is empty")
    lines = [(line.item_id, line.quantity) for line in cart]
    customer = resolve_patient_customer(user)

    try:
        sale = _record_sale(
            user_id=user.id,
            customer_id=customer.id if customer else None,
            lines=lines,
            source="CART",
            tax_rate=tax_rate,
        )
        db.session.query(CartLine).filter_by(user_id=user.id).delete(synchronize_session=False)
        notification_service.create_notification(
            user.id, "Order confirmed", f"Thank you! Your order #{sale.id} totals {sale.total:.2f}.", "order", commit=False
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return sale


def list_sales(limit: int = 200) -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
