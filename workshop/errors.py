"""
Error taxonomy and JSON error handlers.

Every failure a caller can see is one of the kinds below. Handlers render
them with the same envelope the rest of the API uses:
``{"success": false, "message": ..., "error_type": ...}``.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from workshop.database import db

logger = logging.getLogger(__name__)


class WorkshopError(Exception):
    """Base class for errors that are safe to show to the caller."""

    status_code = 400
    error_type = "error"
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(WorkshopError):
    """Missing or malformed input; rejected before any write."""

    status_code = 400
    error_type = "validation_error"
    default_message = "Invalid request data"


class InvalidStatus(ValidationError):
    default_message = "Invalid status provided."


class InvalidLaborCost(ValidationError):
    default_message = "Labor cost must be a non-negative number."


class AuthenticationError(WorkshopError):
    status_code = 401
    error_type = "unauthorized"
    default_message = "Unauthorized access"


class AuthorizationError(WorkshopError):
    """Caller's role is not allowed, or the CSRF token did not match."""

    status_code = 403
    error_type = "forbidden"
    default_message = "Access forbidden"


class NotFoundError(WorkshopError):
    status_code = 404
    error_type = "not_found"
    default_message = "Resource not found"


class JobCardNotFound(NotFoundError):
    default_message = "Job card not found."


class ConflictError(WorkshopError):
    """The request is valid but the current state does not allow it."""

    status_code = 409
    error_type = "conflict"
    default_message = "Request conflicts with the current state"


class InsufficientStock(ConflictError):
    def __init__(self, item_name, available, requested):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {available}, Requested: {requested}"
        )


class JobNotCompleted(ConflictError):
    default_message = (
        "Job card is not yet completed. "
        "An invoice can only be generated for completed jobs."
    )


class InvoiceAlreadyExists(ConflictError):
    default_message = "An invoice already exists for this job card."


class PersistenceError(WorkshopError):
    """The database failed underneath us; the transaction was rolled back."""

    status_code = 500
    error_type = "server_error"
    default_message = "Internal server error. Please try again later."


def error_response(message, error_type, status_code):
    return jsonify({
        'success': False,
        'message': message,
        'error_type': error_type
    }), status_code


def register_error_handlers(app):
    """Attach JSON error handlers to the application."""

    @app.errorhandler(WorkshopError)
    def handle_workshop_error(error):
        if isinstance(error, PersistenceError):
            db.session.rollback()
        return error_response(error.message, error.error_type, error.status_code)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Resource not found', 'not_found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', 'method_not_allowed', 405)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return error_response(error.description, 'http_error', error.code)

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return error_response(
            'Internal server error. Please try again later.', 'server_error', 500
        )
