# Overview: Service-layer operations for the per-user cart.

"""
Cart lines are owned by the authenticated User id directly (not via
Customer). Every lookup is scoped by user_id, so another user's line reads
as not found.

INVARIANT: one line per (user, item). add_to_cart increments an existing
line instead of inserting a duplicate. The read-then-write is not atomic;
the unique constraint turns a lost race into an IntegrityError, which is
retried so the second writer takes the increment path.
"""

from __future__ import annotations

from ..extensions import db
from ..models import CartLine, InventoryItem
from ..validation import NotFoundError, enforce_rules_quantity
from .concurrency import run_with_retry


def list_cart(user_id: int) -> list[CartLine]:
    return (
        db.session.query(CartLine)
        .filter(CartLine.user_id == user_id)
        .order_by(CartLine.id.asc())
        .all()
    )


def _get_line(user_id: int, line_id: int) -> CartLine:
    line = db.session.query(CartLine).filter_by(id=line_id, user_id=user_id).first()
    if line is None:
        raise NotFoundError("Cart item not found")
    return line


def add_to_cart(user_id: int, item_id: int, quantity: int = 1) -> CartLine:
    """
    Add quantity of an item to the user's cart.

    No stock check happens here; availability is enforced at checkout.
    """
    quantity = enforce_rules_quantity(quantity)
    if db.session.get(InventoryItem, item_id) is None:
        raise NotFoundError("Item not found")

    def _op():
        line = db.session.query(CartLine).filter_by(user_id=user_id, item_id=item_id).first()
        if line:
            line.quantity = line.quantity + quantity
        else:
            line = CartLine(user_id=user_id, item_id=item_id, quantity=quantity)
            db.session.add(line)
        db.session.commit()
        return line

    return run_with_retry(_op)


def update_quantity(user_id: int, line_id: int, quantity: int) -> CartLine:
    quantity = enforce_rules_quantity(quantity)
    line = _get_line(user_id, line_id)
    line.quantity = quantity
    db.session.commit()
    return line


def remove_line(user_id: int, line_id: int) -> None:
    line = _get_line(user_id, line_id)
    db.session.delete(line)
    db.session.commit()


def cart_subtotal(lines: list[CartLine]) -> float:
    return round(sum(line.item.price * line.quantity for line in lines if line.item), 2)
