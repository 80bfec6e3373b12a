# Overview: Flask API routes for sales operations; recording and voiding sales against the ledger.

"""
Sales routes.

Recording a sale appends an OUT movement; voiding deletes the sale and
returns its quantity with an ADJ movement. Both require the main role.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_main
from ..services import sales_service
from ..validation import json_body, parse_filter_id

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query params:
    - client_id: int (optional)
    - product_id: int (optional)
    """
    client_id = parse_filter_id(request.args.get("client_id"), "client_id")
    product_id = parse_filter_id(request.args.get("product_id"), "product_id")
    sales = sales_service.list_sales(client_id=client_id, product_id=product_id)
    return jsonify({"ok": True, "sales": [s.to_dict() for s in sales]}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    return jsonify({"ok": True, "sale": sales_service.get_sale(sale_id).to_dict()}), 200


@sales_bp.post("")
@require_auth
@require_main
def create_sale_route():
    """
    Body: {client_id, product_id, qty, unit_price, sale_date, salesperson_id?, note?}

    Returns 409 with on_hand/requested when stock is insufficient.
    """
    data = json_body()
    sale = sales_service.record_sale(
        client_id=data.get("client_id"),
        product_id=data.get("product_id"),
        qty=data.get("qty"),
        unit_price=data.get("unit_price"),
        sale_date=data.get("sale_date"),
        salesperson_id=data.get("salesperson_id"),
        note=data.get("note"),
        user_id=g.current_user.id,
    )
    current_app.logger.info("Sale %s recorded for product %s", sale.id, sale.product_id)
    return jsonify({"ok": True, "sale": sale.to_dict()}), 201


@sales_bp.post("/<int:sale_id>/void")
@require_auth
@require_main
def void_sale_route(sale_id: int):
    snapshot = sales_service.void_sale(sale_id, user_id=g.current_user.id)
    current_app.logger.info("Sale %s voided", sale_id)
    return jsonify({"ok": True, "sale": snapshot}), 200
