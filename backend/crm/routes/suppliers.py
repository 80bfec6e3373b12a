# Overview: Flask API routes for suppliers operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_main
from ..services import supplier_service
from ..validation import json_body

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    suppliers = supplier_service.list_suppliers()
    return jsonify({"ok": True, "suppliers": [s.to_dict() for s in suppliers]}), 200


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    return jsonify({"ok": True, "supplier": supplier_service.get_supplier(supplier_id).to_dict()}), 200


@suppliers_bp.post("")
@require_auth
@require_main
def create_supplier_route():
    """Body: {business_name or contact_name, phone?, email?, website?, supplier_country?, supplier_city?, categories?}"""
    supplier = supplier_service.create_supplier(json_body())
    return jsonify({"ok": True, "supplier": supplier.to_dict()}), 201


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_main
def update_supplier_route(supplier_id: int):
    supplier = supplier_service.update_supplier(supplier_id, json_body())
    return jsonify({"ok": True, "supplier": supplier.to_dict()}), 200


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_main
def delete_supplier_route(supplier_id: int):
    supplier_service.delete_supplier(supplier_id)
    return jsonify({"ok": True}), 200
