# Overview: Flask API routes for salespersons; the default salesperson is attached to sales that name none.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_main
from ..services import salesperson_service
from ..validation import json_body

salespersons_bp = Blueprint("salespersons", __name__, url_prefix="/api/salespersons")


@salespersons_bp.get("")
@require_auth
def list_salespersons_route():
    people = salesperson_service.list_salespersons()
    return jsonify({"ok": True, "salespersons": [p.to_dict() for p in people]}), 200


@salespersons_bp.get("/<int:salesperson_id>")
@require_auth
def get_salesperson_route(salesperson_id: int):
    person = salesperson_service.get_salesperson(salesperson_id)
    return jsonify({"ok": True, "salesperson": person.to_dict()}), 200


@salespersons_bp.post("")
@require_auth
@require_main
def create_salesperson_route():
    person = salesperson_service.create_salesperson(json_body())
    return jsonify({"ok": True, "salesperson": person.to_dict()}), 201


@salespersons_bp.put("/<int:salesperson_id>")
@require_auth
@require_main
def update_salesperson_route(salesperson_id: int):
    person = salesperson_service.update_salesperson(salesperson_id, json_body())
    return jsonify({"ok": True, "salesperson": person.to_dict()}), 200


@salespersons_bp.post("/<int:salesperson_id>/default")
@require_auth
@require_main
def set_default_route(salesperson_id: int):
    person = salesperson_service.set_default(salesperson_id)
    return jsonify({"ok": True, "salesperson": person.to_dict()}), 200


@salespersons_bp.delete("/<int:salesperson_id>")
@require_auth
@require_main
def delete_salesperson_route(salesperson_id: int):
    salesperson_service.delete_salesperson(salesperson_id)
    return jsonify({"ok": True}), 200
