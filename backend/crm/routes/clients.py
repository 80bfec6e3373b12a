# Overview: Flask API routes for clients operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_main
from ..services import client_service
from ..validation import json_body

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
def list_clients_route():
    """Query params: search (optional, matches name)."""
    clients = client_service.list_clients(request.args.get("search"))
    return jsonify({"ok": True, "clients": [c.to_dict() for c in clients]}), 200


@clients_bp.get("/<int:client_id>")
@require_auth
def get_client_route(client_id: int):
    return jsonify({"ok": True, "client": client_service.get_client(client_id).to_dict()}), 200


@clients_bp.post("")
@require_auth
@require_main
def create_client_route():
    client = client_service.create_client(json_body())
    return jsonify({"ok": True, "client": client.to_dict()}), 201


@clients_bp.put("/<int:client_id>")
@require_auth
@require_main
def update_client_route(client_id: int):
    client = client_service.update_client(client_id, json_body())
    return jsonify({"ok": True, "client": client.to_dict()}), 200


@clients_bp.delete("/<int:client_id>")
@require_auth
@require_main
def delete_client_route(client_id: int):
    """Clients referenced by sales answer 409."""
    client_service.delete_client(client_id)
    return jsonify({"ok": True}), 200
