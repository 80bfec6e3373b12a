# Overview: Error taxonomy shared by services and the JSON error envelope at the HTTP boundary.

"""
Application errors.

Services raise these; `register_error_handlers` turns them into the
`{"ok": false, "error": ...}` envelope. Anything that is not a CRMError
is logged with its traceback and reported as a generic 500.
"""

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class CRMError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        rv = dict(self.details)
        rv["ok"] = False
        rv["error"] = self.message
        return rv


class ValidationError(CRMError, ValueError):
    """Missing or malformed input. Nothing was written."""

    status_code = 400


class AuthError(CRMError):
    """Missing or invalid credential."""

    status_code = 401


class ConflictError(CRMError, ValueError):
    """Business rule conflict (duplicate key, blocked delete, insufficient stock)."""

    status_code = 409


class NotFoundError(CRMError):
    status_code = 404


class DependencyError(CRMError):
    """External collaborator (Drive, Sheets, mail) failed or is not configured."""

    status_code = 500


def error_response(message: str, status_code: int, **extra):
    body = {"ok": False, "error": message}
    body.update(extra)
    return jsonify(body), status_code


def register_error_handlers(app) -> None:
    @app.errorhandler(CRMError)
    def handle_crm_error(error: CRMError):
        db.session.rollback()
        if isinstance(error, DependencyError):
            # Detail stays in the log; the client gets a generic message
            current_app.logger.error("Dependency failure: %s", error.message)
            return error_response("External service error", error.status_code)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        db.session.rollback()
        if error.code == 413:
            return error_response("Upload too large", 413)
        return error_response(error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return error_response("Server error", 500)
