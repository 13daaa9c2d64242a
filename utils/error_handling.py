"""
Standardized error handling utilities for the Quit service.

This module provides consistent error response formatting, custom exception classes,
and the Flask error handlers registered on the application.
"""

from flask import jsonify
from typing import Optional, Tuple, Dict, Any
from werkzeug.exceptions import HTTPException

from utils.audit_logger import audit_logger


# Custom exception classes for domain-specific errors
class QuitServiceError(Exception):
    """Base exception for all Quit service errors."""

    def __init__(self, message: str, error_code: str = 'INTERNAL_ERROR', status_code: int = 500,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(QuitServiceError):
    """Exception raised for input validation failures; details maps field -> messages."""

    def __init__(self, message: str = 'Invalid data', details: Optional[Dict[str, Any]] = None,
                 error_code: str = 'VALIDATION_ERROR'):
        super().__init__(message, error_code, 400, details)


class UnauthorizedError(QuitServiceError):
    """Exception raised for missing or invalid credentials."""

    def __init__(self, message: str = 'Unauthorized', error_code: str = 'UNAUTHORIZED'):
        super().__init__(message, error_code, 401)


class NotFoundError(QuitServiceError):
    """
    Exception raised when a target is missing, not owned by the caller, or not
    in the state the operation requires. The three cases are deliberately not
    distinguished.
    """

    def __init__(self, message: str = 'Challenge not found or already finished.',
                 error_code: str = 'NOT_FOUND'):
        super().__init__(message, error_code, 404)


class ConflictError(QuitServiceError):
    """Exception raised when an at-most-one invariant would be violated."""

    def __init__(self, message: str, error_code: str = 'CONFLICT'):
        super().__init__(message, error_code, 409)


def create_error_response(
    error: Exception,
    user_id: Optional[str] = None,
    include_details: bool = False
) -> Tuple[Dict[str, Any], int]:
    """
    Create a standardized error response with logging.

    Args:
        error: The exception that occurred
        user_id: Optional principal id for logging
        include_details: Whether to expose unexpected error text (only in development)

    Returns:
        Tuple of (response dict, status code)
    """
    # Handle custom QuitServiceError exceptions
    if isinstance(error, QuitServiceError):
        status_code = error.status_code
        error_code = error.error_code
        message = error.message

        # Log based on severity
        if status_code >= 500:
            audit_logger.log_error(
                'application',
                message=message,
                user_id=user_id,
                error_code=error_code
            )

        response = {
            'error': message,
            'error_code': error_code
        }

        if error.details:
            response['details'] = error.details

    # Handle unexpected exceptions
    else:
        status_code = 500
        error_code = 'INTERNAL_ERROR'

        # Log unexpected errors with full details
        audit_logger.log_error(
            'application',
            message=f'Unexpected error: {str(error)}',
            user_id=user_id,
            error_code=error_code,
            exception_type=type(error).__name__
        )

        # Don't expose internal error details to users in production
        if include_details:
            message = str(error)
        else:
            message = 'An internal error occurred. Please try again later.'

        response = {
            'error': message,
            'error_code': error_code
        }

    return response, status_code


_HTTP_ERROR_CODES = {
    400: ('Malformed request body', 'BAD_REQUEST'),
    404: ('Route not found', 'ROUTE_NOT_FOUND'),
    405: ('Method not allowed', 'METHOD_NOT_ALLOWED'),
    413: ('Request body too large', 'PAYLOAD_TOO_LARGE'),
}


def register_error_handlers(app):
    """Install JSON error handlers for domain errors and HTTP-level failures."""

    @app.errorhandler(QuitServiceError)
    def handle_service_error(error):
        response, status_code = create_error_response(error)
        return jsonify(response), status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        message, error_code = _HTTP_ERROR_CODES.get(error.code, (error.description, 'HTTP_ERROR'))
        return jsonify({'error': message, 'error_code': error_code}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        response, status_code = create_error_response(error, include_details=app.debug)
        return jsonify(response), status_code
