from __future__ import annotations

from ..extensions import db
from webpos.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data plus the authoritative stock count.

    Money is stored in minor units (integers). ``stock`` is only moved by
    InventoryLedger.decrement_stock during a sale, or by an admin edit.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_sku", "sku"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, default="")
    name = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Integer, nullable=False, default=0)
    cost = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "price": self.price,
            "cost": self.cost,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
