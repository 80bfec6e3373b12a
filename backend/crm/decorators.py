# Overview: Request and role decorators for API routes.

from functools import wraps

from flask import g, request

from .errors import error_response
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "roles")


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.roles: list of role names
    - g.session_token: the plaintext bearer token (used by logout)

    Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context:
            return error_response("Invalid or expired token", 401)

        g.current_user = context.user
        g.roles = context.roles
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_roles(*role_names: str):
    """
    Require the caller to hold at least one of the given roles.

    Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Authentication required", 401)

            if not set(g.roles) & set(role_names):
                return error_response(
                    "Forbidden",
                    403,
                    required_roles=list(role_names),
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_main(f):
    """Shorthand for mutations, which only the main role may perform."""
    return require_roles("main")(f)
