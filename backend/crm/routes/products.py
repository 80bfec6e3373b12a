# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalogue routes.

SECURITY: All routes require authentication.
- Read operations are open to every role; purchase prices are redacted
  unless the caller holds main or doctor
- Write operations require the main role
"""
from flask import Blueprint, g, jsonify

from ..decorators import require_auth, require_main
from ..services import products_service
from ..services.auth_service import can_see_purchase_price
from ..services.inventory_service import get_product
from ..validation import json_body, query_flag

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _product_response(product, status_code: int = 200):
    data = products_service.serialize_products(
        [product], show_purchase_price=can_see_purchase_price(g.roles)
    )[0]
    return jsonify({"ok": True, "product": data}), status_code


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products with on-hand and last purchase.

    Query params:
    - include_archived: 1/true to include archived products
    """
    products = products_service.list_products(include_archived=query_flag("include_archived"))
    items = products_service.serialize_products(
        products, show_purchase_price=can_see_purchase_price(g.roles)
    )
    return jsonify({"ok": True, "products": items}), 200


@products_bp.post("")
@require_auth
@require_main
def create_product_route():
    """
    Create a new product.

    Body: {code, official_name, market_name?, category?, default_sell_price?, price_tiers?}
    """
    product = products_service.create_product(json_body())
    return _product_response(product, 201)


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return _product_response(get_product(product_id))


@products_bp.put("/<int:product_id>")
@require_auth
@require_main
def update_product_route(product_id: int):
    product = products_service.update_product(product_id, json_body())
    return _product_response(product)


@products_bp.post("/<int:product_id>/archive")
@require_auth
@require_main
def archive_product_route(product_id: int):
    """Archived products keep their history but refuse new batches and sales."""
    product = products_service.set_archived(product_id, True)
    return _product_response(product)


@products_bp.post("/<int:product_id>/unarchive")
@require_auth
@require_main
def unarchive_product_route(product_id: int):
    product = products_service.set_archived(product_id, False)
    return _product_response(product)


@products_bp.put("/<int:product_id>/price-tiers")
@require_auth
@require_main
def replace_price_tiers_route(product_id: int):
    """Body: {price_tiers: [{min_qty, unit_price}, ...]}; replaces the whole set."""
    data = json_body()
    product = products_service.replace_price_tiers(product_id, data.get("price_tiers", []))
    return _product_response(product)


@products_bp.delete("/<int:product_id>/price-tiers/<int:min_qty>")
@require_auth
@require_main
def delete_price_tier_route(product_id: int, min_qty: int):
    products_service.delete_price_tier(product_id, min_qty)
    return jsonify({"ok": True}), 200
