# Overview: Flask API routes for user administration; main role only.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth, require_main
from ..services import user_service
from ..validation import json_body

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_main
def list_users_route():
    users = user_service.list_users()
    return jsonify({"ok": True, "users": [u.to_dict() for u in users]}), 200


@users_bp.post("")
@require_auth
@require_main
def create_user_route():
    """Body: {full_name, email, password, role}. Duplicate email -> 409, unknown role -> 400."""
    data = json_body()
    user = user_service.create_user(
        full_name=data.get("full_name"),
        email=data.get("email"),
        password=data.get("password"),
        role=data.get("role"),
    )
    return jsonify({"ok": True, "user": user.to_dict()}), 201


@users_bp.patch("/<int:user_id>")
@require_auth
@require_main
def update_user_route(user_id: int):
    user = user_service.update_user(user_id, json_body(), acting_user=g.current_user)
    return jsonify({"ok": True, "user": user.to_dict()}), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_main
def delete_user_route(user_id: int):
    user_service.delete_user(user_id, acting_user=g.current_user)
    return jsonify({"ok": True}), 200
