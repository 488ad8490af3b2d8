# Overview: Inventory ledger: product records and atomic stock decrements.

# backend/webpos/services/inventory_service.py
"""
Inventory invariants (authoritative)

- Product.stock is the single source of truth for quantity on hand.
- Within a checkout, stock only moves through decrement_stock().
- decrement_stock() is one conditional UPDATE:
      UPDATE products SET stock = stock - :qty
      WHERE id = :id AND stock >= :qty
  so the check and the write happen in the database, not in Python. Two
  concurrent sales can never both read the same pre-decrement value.
- Stock stays >= 0 unless the caller explicitly allows backorder.
- A missing product is an error, never a silent skip.
"""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.orm.util import identity_key

from ..errors import InsufficientStock, NotFound, ValidationError
from ..models import Product
from ..validation import ModelValidationPolicy, is_record_id, record_id, strict_int, validate_payload


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "price", "cost", "stock"},
    required_on_create={"name"},
    non_negative_fields={"price", "cost", "stock"},
)


class InventoryLedger:
    """Product reads and stock movement, bound to one SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def get_product(self, product_id: int) -> Product | None:
        # Out-of-range ids cannot exist and would overflow the driver.
        if not is_record_id(product_id):
            return None
        return self.session.get(Product, product_id)

    def require_product(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise NotFound("Product not found", details={"product_id": product_id})
        return product

    def list_products(self) -> list[Product]:
        return self.session.query(Product).order_by(Product.id.desc()).all()

    def decrement_stock(self, product_id: int, qty: int, *, allow_backorder: bool = False) -> None:
        """
        Atomically reduce stock by ``qty``.

        Does not commit: the caller owns the transaction, so a decrement made
        as part of a sale is rolled back with it.

        Raises:
            ValidationError: product_id out of range, or qty not a positive integer
            NotFound: product does not exist
            InsufficientStock: qty > stock and backorder is not allowed
        """
        product_id = record_id(product_id, "product_id")
        qty = strict_int(qty, "qty")
        if qty <= 0:
            raise ValidationError("qty must be positive", details={"product_id": product_id})

        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock - qty)
            .execution_options(synchronize_session=False)
        )
        if not allow_backorder:
            stmt = stmt.where(Product.stock >= qty)

        result = self.session.execute(stmt)
        if result.rowcount == 1:
            self._expire(product_id)
            return

        # Nothing matched: work out why.
        on_hand = self.session.query(Product.stock).filter(Product.id == product_id).scalar()
        if on_hand is None:
            raise NotFound("Product not found", details={"product_id": product_id})
        raise InsufficientStock(
            "Insufficient stock",
            details={
                "product_id": product_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            },
        )

    def _expire(self, product_id: int) -> None:
        # The UPDATE bypassed the identity map; make the next read hit the row.
        product = self.session.identity_map.get(identity_key(Product, product_id))
        if product is not None:
            self.session.expire(product, ["stock"])

    # Admin CRUD. These never run inside a checkout.

    def create_product(self, payload: dict) -> Product:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        product = Product(**patch)
        self.session.add(product)
        self.session.commit()
        return product

    def update_product(self, product_id: int, payload: dict) -> Product:
        product = self.require_product(product_id)
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        for key, value in patch.items():
            setattr(product, key, value)
        self.session.commit()
        return product

    def delete_product(self, product_id: int) -> None:
        """Remove a product. Past sales keep their own copy of the line data."""
        product = self.require_product(product_id)
        self.session.delete(product)
        self.session.commit()
