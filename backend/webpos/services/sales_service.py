"""
Sale Processor - checkout as one unit of work

WHY: A sale and the stock it consumes must agree. The Sale row and every
stock decrement commit together or not at all, so a crash or a failed line
can never leave a recorded sale without its inventory movement (or the
reverse).
"""

from __future__ import annotations

from ..errors import NotFound, ValidationError
from ..models import Sale
from ..validation import SaleRequest, is_record_id, parse_sale_request
from .concurrency import begin_write, run_with_retry
from .inventory_service import InventoryLedger


class SaleProcessor:
    def __init__(
        self,
        session,
        ledger: InventoryLedger,
        *,
        allow_backorder: bool = False,
        strict_totals: bool = True,
    ):
        self.session = session
        self.ledger = ledger
        self.allow_backorder = allow_backorder
        self.strict_totals = strict_totals

    def process_sale(self, request: SaleRequest | dict, user_id: int | None = None) -> int:
        """
        Validate, record and post a sale. Returns the new sale id.

        Raises ValidationError, NotFound or InsufficientStock; in every
        failure case nothing from this call is persisted.
        Raises InternalError if the session already holds uncommitted changes; those
        are left in place.
        """
        if not isinstance(request, SaleRequest):
            request = parse_sale_request(request)

        def _op():
            # Outside the try: a refused start must not roll back the caller's work.
            begin_write(self.session)
            try:
                products = self._resolve_products(request)
                sale = Sale(
                    created_by_user_id=user_id,
                    items=[
                        {
                            "product_id": line.product_id,
                            "qty": line.qty,
                            "unit_price": products[line.product_id].price,
                        }
                        for line in request.lines
                    ],
                    **self._totals(request, products),
                )
                self.session.add(sale)
                self.session.flush()
                sale_id = sale.id

                for line in request.lines:
                    self.ledger.decrement_stock(
                        line.product_id,
                        line.qty,
                        allow_backorder=self.allow_backorder,
                    )

                self.session.commit()
                return sale_id
            except Exception:
                self.session.rollback()
                raise

        return run_with_retry(self.session, _op)

    def _resolve_products(self, request: SaleRequest) -> dict:
        products = {}
        missing = []
        for line in request.lines:
            if line.product_id in products:
                continue
            product = self.ledger.get_product(line.product_id)
            if product is None:
                missing.append(line.product_id)
            else:
                products[line.product_id] = product
        if missing:
            raise NotFound("Product not found", details={"product_ids": missing})
        return products

    def _totals(self, request: SaleRequest, products: dict) -> dict:
        """
        Monetary columns for the Sale row.

        strict_totals: subtotal and total_cost come from current product
        price/cost; a submitted figure is only checked against them.
        Otherwise the submitted figures are stored as-is.
        """
        totals = {
            "discount": request.discount or 0,
            "extra_fee": request.extra_fee or 0,
            "payment_amount": request.payment_amount or 0,
        }

        if not self.strict_totals:
            totals["subtotal"] = request.subtotal or 0
            totals["total_cost"] = request.total_cost or 0
            return totals

        subtotal = sum(products[line.product_id].price * line.qty for line in request.lines)
        total_cost = sum(products[line.product_id].cost * line.qty for line in request.lines)

        mismatches = {}
        if request.subtotal is not None and request.subtotal != subtotal:
            mismatches["subtotal"] = {"submitted": request.subtotal, "computed": subtotal}
        if request.total_cost is not None and request.total_cost != total_cost:
            mismatches["total_cost"] = {"submitted": request.total_cost, "computed": total_cost}
        if mismatches:
            raise ValidationError("Submitted totals do not match items", details=mismatches)

        totals["subtotal"] = subtotal
        totals["total_cost"] = total_cost
        return totals

    def list_sales(self) -> list[Sale]:
        """All sales, newest first."""
        return self.session.query(Sale).order_by(Sale.id.desc()).all()

    def get_sale(self, sale_id: int) -> Sale:
        sale = self.session.get(Sale, sale_id) if is_record_id(sale_id) else None
        if sale is None:
            raise NotFound("Sale not found", details={"sale_id": sale_id})
        return sale
