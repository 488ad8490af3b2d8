# Overview: Flask API routes for checkout and sale history.

# backend/webpos/routes/sales.py
"""Sales API routes. Sales are append-only: there is no update or delete."""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import InternalError, PosError
from ..decorators import require_auth
from ..services.container import get_services


sales_bp = Blueprint("sales", __name__, url_prefix="/sales")


@sales_bp.post("")
@require_auth
def process_sale_route():
    """
    Record a sale and debit stock in one transaction.

    Body:
    {
        "subtotal": 4000, "totalCost": 2400, "discount": 0,
        "extraFee": 0, "paymentAmount": 4000,
        "items": [{"productId": 1, "qty": 4}]
    }

    Returns 201 {"id": <sale id>}; 400 validation_error, 404 not_found,
    409 insufficient_stock.
    """
    try:
        data = request.get_json(silent=True)
        sale_id = get_services().sales.process_sale(data, user_id=g.claims.user_id)
        current_app.logger.info("Sale %s recorded by %s", sale_id, g.claims.username)
        return jsonify({"id": sale_id}), 201

    except PosError as e:
        current_app.logger.warning("Sale rejected (%s): %s", e.code, e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """All sales, newest first."""
    try:
        sales = get_services().sales.list_sales()
        return jsonify([sale.to_dict() for sale in sales]), 200
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = get_services().sales.get_sale(sale_id)
        return jsonify(sale.to_dict()), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load sale %s", sale_id)
        return jsonify(InternalError("Internal server error").to_dict()), 500
