# Overview: API error taxonomy and the Flask handlers that render it as JSON.

"""
Error taxonomy shared by services and routes.

Services raise these; routes either let them propagate to the handlers
registered here or catch them where a route needs a different response.

Status mapping:
- ValidationError    400  malformed or missing input (details carry field info)
- UnauthorizedError  401  missing, invalid or expired credential
- ForbiddenError     403  authenticated but not allowed (incl. system roles)
- NotFoundError      404  referenced entity does not exist
- ConflictError      409  duplicate unique key or conflicting state
- anything else      500  logged, generic message
"""

from __future__ import annotations

from flask import jsonify, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException


class ConfigurationError(RuntimeError):
    """Raised at startup when the deployment is misconfigured."""


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ApiError, ValueError):
    status_code = 400
    default_message = "Invalid request data"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(ApiError, LookupError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError, ValueError):
    status_code = 409
    default_message = "Conflict"


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        from .extensions import db

        db.session.rollback()
        current_app.logger.warning("Integrity error: %s", exc.orig)
        return jsonify({"error": "Duplicate or conflicting record"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({"error": exc.name, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
