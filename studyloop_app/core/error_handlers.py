"""
Error handling for StudyLoop.

Provides:
- The base exception class carrying an error code and HTTP status
- Consistent JSON error payloads
- Flask error handlers
"""

from typing import Any, Dict, Optional

from flask import current_app, jsonify, request


class AppError(Exception):
    """Base exception class for StudyLoop."""

    code = 'UNKNOWN_ERROR'
    status_code = 500

    def __init__(
        self,
        message: str = 'Unexpected error',
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON response."""
        payload = {
            'success': False,
            'message': self.message,
            'code': self.code,
        }
        if self.details:
            payload['details'] = self.details
        return payload


def error_response(
    message: str,
    code: str = 'ERROR',
    status_code: int = 400,
    details: Dict = None
) -> tuple:
    """Create a standardized error response."""
    response = {
        'success': False,
        'message': message,
        'code': code
    }
    if details:
        response['details'] = details

    return jsonify(response), status_code


def register_error_handlers(app):
    """Register error handlers with Flask app."""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        current_app.logger.warning(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(401)
    def handle_unauthorized(error):
        return error_response('Authentication required', 'UNAUTHORIZED', 401)

    @app.errorhandler(404)
    def handle_not_found(error):
        if '/api/' in request.path:
            return error_response('Endpoint not found', 'NOT_FOUND', 404)
        return error

    @app.errorhandler(500)
    def handle_internal_error(error):
        current_app.logger.exception('Internal server error')
        if '/api/' in request.path:
            return error_response('Internal server error', 'SERVER_ERROR', 500)
        return error
