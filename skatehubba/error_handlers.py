"""JSON error responses for the API."""

from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .errors import AppError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_body(code, message):
    return {"success": False, "code": code, "message": message}


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Render an application error with its status and stable code."""
    if error.status_code >= 500:
        current_app.logger.error(f"{type(error).__name__}: {error.message}")
    else:
        current_app.logger.warning(f"{type(error).__name__}: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    """Handles werkzeug errors such as unknown routes or oversized bodies."""
    code = (e.name or "error").upper().replace(" ", "_")
    return jsonify(_error_body(code, e.description)), e.code


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return jsonify(_error_body("INTERNAL", "Something went wrong.")), 500
