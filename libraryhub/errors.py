"""Error taxonomy shared by services and controllers.

Services raise the subclasses of :class:`LibraryError`; the handlers
registered by :func:`register_error_handlers` render every one of them in
the same JSON envelope the successful responses use.
"""
from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from libraryhub.extensions import db


class LibraryError(Exception):
    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str = None, details: list = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(LibraryError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request payload"


class Unauthorized(LibraryError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required"


class Forbidden(LibraryError):
    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to do this"


class NotFound(LibraryError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(LibraryError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class Unavailable(LibraryError):
    status_code = 409
    code = "unavailable"
    default_message = "No copies of this book are available"


class InvalidState(LibraryError):
    status_code = 409
    code = "invalid_state"
    default_message = "Operation not allowed in the current state"


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def _library_error(e: LibraryError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({
            "success": False,
            "error": e.name.lower().replace(" ", "_"),
            "message": e.description,
        }), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        db.session.rollback()
        current_app.logger.exception(f"[errors] Unhandled exception: {e}")
        return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500
