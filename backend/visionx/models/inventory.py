from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


INVENTORY_CATEGORIES = ("frame", "sunglasses", "lens", "accessory")


class InventoryItem(db.Model):
    """
    Sellable unit (frame, sunglasses, lens, accessory).

    details is a JSON-serialized attribute bag whose keys vary by category
    (frames: color/material/shape, lenses: coating/index). It is stored and
    transported as a string.

    INVARIANT: stock never goes negative (CHECK constraint + conditional
    decrement in inventory_service.decrement_stock).
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),
        db.CheckConstraint("price >= 0", name="ck_inventory_price_non_negative"),
        db.Index("ix_inventory_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(32), nullable=False)
    brand = db.Column(db.String(128), nullable=True)
    model = db.Column(db.String(128), nullable=True)
    price = db.Column(db.Float, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(512), nullable=True)
    details = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            # Older clients read the category under "type"
            "type": self.category,
            "brand": self.brand,
            "model": self.model,
            "price": self.price,
            "stock": self.stock,
            "image_url": self.image_url,
            "details": self.details,
            "created_at": to_utc_z(self.created_at),
        }


class CartLine(db.Model):
    """
    Pending purchase of one inventory item by one user.

    INVARIANT: at most one line per (user, item); adding again increments
    quantity (see cart_service.add_to_cart).
    """
    __tablename__ = "cart"
    __table_args__ = (
        db.UniqueConstraint("user_id", "item_id", name="uq_cart_user_item"),
        db.CheckConstraint("quantity >= 1", name="ck_cart_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("InventoryItem", backref=db.backref("cart_lines", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        item = self.item
        return {
            "id": self.id,
            "user_id": self.user_id,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "brand": item.brand if item else None,
            "model": item.model if item else None,
            "category": item.category if item else None,
            "price": item.price if item else None,
            "line_total": round(item.price * self.quantity, 2) if item else None,
            "created_at": to_utc_z(self.created_at),
        }
