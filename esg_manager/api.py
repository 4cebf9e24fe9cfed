"""
JSON envelope shared by every /api endpoint.

Successful responses look like ``{"success": true, "message": ..., "data": ...}``;
failures look like ``{"success": false, "message": ..., "errors": [...]}``.
Services raise ``ApiError`` subclasses and the handler registered here turns
them into responses, so route functions only deal with the happy path.
"""

import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication failed"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


def success(data=None, message=None, status=200):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def register_api_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"API error: {error.message}")
        return jsonify(error.to_dict()), error.status_code
