# Overview: Flask API routes for auth operations; login, logout, current user, bootstrap and password reset.

"""
Authentication API routes

- Login returns an opaque bearer token and the user with roles
- Self-registration does not exist; users are created by a main user,
  by `flask users create` or by the one-shot setup endpoint
"""

import hmac

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import error_response
from ..services import auth_service, session_service
from ..validation import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = json_body()
    user = auth_service.authenticate(data.get("email"), data.get("password"))

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    current_app.logger.info("User %s logged in", user.id)

    return jsonify({
        "ok": True,
        "token": token,
        "user": user.to_dict(),
        "expires_at": session.to_dict()["expires_at"],
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the caller's session token."""
    session_service.revoke_session(g.session_token, reason="User logout")
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"ok": True, "user": g.current_user.to_dict()}), 200


@auth_bp.post("/setup")
def setup_route():
    """
    One-shot bootstrap of roles and the main/doctor/general users.

    Requires header X-Setup-Token equal to SETUP_TOKEN.
    """
    expected = current_app.config.get("SETUP_TOKEN")
    if not expected:
        return error_response("SETUP_TOKEN is not configured", 500)

    provided = request.headers.get("X-Setup-Token", "")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        return error_response("Invalid setup token", 401)

    users = auth_service.setup_initial_users(json_body())
    current_app.logger.info("Setup completed for %d users", len(users))
    return jsonify({"ok": True, "users": users}), 200


@auth_bp.post("/forgot-password")
def forgot_password_route():
    """Always answers with the same message, whether or not the account exists."""
    data = json_body()
    auth_service.reset_forgotten_password(data.get("email"))
    return jsonify({"ok": True, "message": auth_service.FORGOT_PASSWORD_MESSAGE}), 200
