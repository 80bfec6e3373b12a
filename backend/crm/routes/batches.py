# Overview: Flask API routes for batch receiving and voiding; every write goes through inventory_service.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_main
from ..services import inventory_service
from ..services.auth_service import can_see_purchase_price
from ..validation import json_body, parse_filter_id, query_flag

batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


@batches_bp.get("")
@require_auth
def list_batches_route():
    """
    List batches, newest purchase first.

    Query params:
    - product_id: int (optional)
    - include_voided: 1/true to include voided batches
    """
    product_id = parse_filter_id(request.args.get("product_id"), "product_id")
    batches = inventory_service.list_batches(product_id, include_voided=query_flag("include_voided"))
    show = can_see_purchase_price(g.roles)
    return jsonify({
        "ok": True,
        "batches": [inventory_service.batch_to_dict(b, show_purchase_price=show) for b in batches],
    }), 200


@batches_bp.post("")
@require_auth
@require_main
def receive_batch_route():
    """
    Receive stock for a lot.

    A new lot answers 201; a lot that merged into the active batch with
    the same (product_id, lot_number) answers 200 with merged=true.
    """
    data = json_body()
    batch, merged = inventory_service.receive_batch(
        product_id=data.get("product_id"),
        lot_number=data.get("lot_number"),
        purchase_date=data.get("purchase_date"),
        purchase_price=data.get("purchase_price"),
        qty_received=data.get("qty_received"),
        expiry_date=data.get("expiry_date"),
        supplier_id=data.get("supplier_id"),
        supplier_name=data.get("supplier_name"),
        supplier_invoice_no=data.get("supplier_invoice_no"),
        user_id=g.current_user.id,
    )
    current_app.logger.info(
        "Batch %s %s for product %s", batch.id, "merged" if merged else "created", batch.product_id
    )
    return jsonify({
        "ok": True,
        "merged": merged,
        "batch": inventory_service.batch_to_dict(batch, show_purchase_price=True),
    }), 200 if merged else 201


@batches_bp.post("/<int:batch_id>/void")
@require_auth
@require_main
def void_batch_route(batch_id: int):
    """Refused with 409 when already void or when its quantity has been sold."""
    batch = inventory_service.void_batch(batch_id, user_id=g.current_user.id)
    current_app.logger.info("Batch %s voided", batch.id)
    return jsonify({
        "ok": True,
        "batch": inventory_service.batch_to_dict(batch, show_purchase_price=True),
    }), 200
