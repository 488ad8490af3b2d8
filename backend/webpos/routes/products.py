# Overview: Flask API routes for products; reads for every user, writes for admins.

# backend/webpos/routes/products.py
"""
Product routes.

SECURITY: All routes require authentication, including read-only listing.
- Reads: any authenticated user
- Writes: admin role
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..errors import InternalError, PosError
from ..decorators import require_auth, require_role
from ..services.container import get_services


products_bp = Blueprint("products", __name__, url_prefix="/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """All products, newest first."""
    try:
        products = get_services().ledger.list_products()
        return jsonify([p.to_dict() for p in products]), 200
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = get_services().ledger.require_product(product_id)
        return jsonify(product.to_dict()), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load product %s", product_id)
        return jsonify(InternalError("Internal server error").to_dict()), 500


@products_bp.post("")
@require_auth
@require_role("admin")
def create_product_route():
    """
    Create a product.

    Body: {"sku": "...", "name": "...", "price": 1000, "cost": 600, "stock": 10}
    """
    try:
        product = get_services().ledger.create_product(request.get_json(silent=True) or {})
        current_app.logger.info("Product %s created by %s", product.id, g.claims.username)
        return jsonify(product.to_dict()), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("admin")
def update_product_route(product_id: int):
    try:
        product = get_services().ledger.update_product(product_id, request.get_json(silent=True) or {})
        current_app.logger.info("Product %s updated by %s", product_id, g.claims.username)
        return jsonify(product.to_dict()), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    try:
        get_services().ledger.delete_product(product_id)
        current_app.logger.info("Product %s deleted by %s", product_id, g.claims.username)
        return jsonify({"ok": True}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify(InternalError("Internal server error").to_dict()), 500
