# Overview: Flask API routes for the inventory ledger; on-hand, movement history, adjustments and returns.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_main
from ..services import inventory_service
from ..services.auth_service import can_see_purchase_price
from ..time_utils import parse_iso_date
from ..validation import ValidationError, json_body

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/<int:product_id>")
@require_auth
def on_hand_route(product_id: int):
    """
    On-hand for one product, derived from the ledger.

    Query params:
    - as_of: YYYY-MM-DD (optional), counts movements dated on or before it
    """
    product = inventory_service.get_product(product_id)
    as_of = None
    raw = request.args.get("as_of")
    if raw:
        try:
            as_of = parse_iso_date(raw)
        except ValueError:
            raise ValidationError("as_of must be YYYY-MM-DD")
    on_hand = inventory_service.get_on_hand(product_id, as_of=as_of)
    avg = product.avg_purchase_price if can_see_purchase_price(g.roles) else None
    return jsonify({
        "ok": True,
        "product_id": product_id,
        "on_hand": on_hand,
        "avg_purchase_price": float(avg) if avg is not None else None,
    }), 200


@inventory_bp.get("/<int:product_id>/movements")
@require_auth
def movements_route(product_id: int):
    movements = inventory_service.list_movements(product_id)
    return jsonify({"ok": True, "movements": [m.to_dict() for m in movements]}), 200


@inventory_bp.post("/adjust")
@require_auth
@require_main
def adjust_route():
    """Body: {product_id, quantity (signed, non-zero), movement_date?, note?}"""
    data = json_body()
    movement = inventory_service.adjust_inventory(
        product_id=data.get("product_id"),
        quantity=data.get("quantity"),
        movement_date=data.get("movement_date"),
        note=data.get("note"),
        user_id=g.current_user.id,
    )
    return jsonify({"ok": True, "movement": movement.to_dict()}), 201


@inventory_bp.post("/returns")
@require_auth
@require_main
def return_route():
    """Body: {product_id, quantity (> 0), movement_date?, note?}"""
    data = json_body()
    movement = inventory_service.record_return(
        product_id=data.get("product_id"),
        quantity=data.get("quantity"),
        movement_date=data.get("movement_date"),
        note=data.get("note"),
        user_id=g.current_user.id,
    )
    return jsonify({"ok": True, "movement": movement.to_dict()}), 201
