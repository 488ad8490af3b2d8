from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from webpos.time_utils import to_utc_z, utcnow


class ImmutableSaleError(RuntimeError):
    """Raised when something tries to change or remove a recorded sale."""


class Sale(db.Model):
    """
    Completed checkout. Append-only.

    ``items`` is an ordered JSON list of ``{product_id, qty, unit_price}``.
    product_id is deliberately not a foreign key: historical sales must
    stay readable after a product is deleted.

    IMMUTABLE: no update or delete path. Reversing a sale means recording
    a compensating one.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # All amounts in minor units
    subtotal = db.Column(db.Integer, nullable=False, default=0)
    total_cost = db.Column(db.Integer, nullable=False, default=0)
    discount = db.Column(db.Integer, nullable=False, default=0)
    extra_fee = db.Column(db.Integer, nullable=False, default=0)
    payment_amount = db.Column(db.Integer, nullable=False, default=0)

    items = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "created_by_user_id": self.created_by_user_id,
            "subtotal": self.subtotal,
            "total_cost": self.total_cost,
            "discount": self.discount,
            "extra_fee": self.extra_fee,
            "payment_amount": self.payment_amount,
            "items": [dict(item) for item in (self.items or [])],
        }


@event.listens_for(Sale, "before_update")
def _refuse_sale_update(mapper, connection, target):
    raise ImmutableSaleError(f"Sale {target.id} is immutable")


@event.listens_for(Sale, "before_delete")
def _refuse_sale_delete(mapper, connection, target):
    raise ImmutableSaleError(f"Sale {target.id} cannot be deleted")
