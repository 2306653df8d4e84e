"""
TaskTracker error taxonomy and JSON error handlers.

Services raise ``TaskTrackerError`` subclasses; ``register_error_handlers``
turns them (and Flask/extension errors) into the standard JSON envelope:

    {"success": false, "message": "...", "error": {...}}
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

from flask import jsonify
from flask_limiter.errors import RateLimitExceeded
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    DATABASE = "database"
    UNKNOWN = "unknown"


class TaskTrackerError(Exception):
    """Base exception for TaskTracker domain errors."""
    status_code = 500
    default_category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        category: Optional[ErrorCategory] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        if status_code is not None:
            self.status_code = status_code
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'category': self.category.value,
            'status_code': self.status_code,
            'context': self.context,
            'timestamp': self.timestamp.isoformat()
        }


class ValidationError(TaskTrackerError):
    status_code = 400
    default_category = ErrorCategory.VALIDATION


class AuthenticationError(TaskTrackerError):
    status_code = 401
    default_category = ErrorCategory.AUTHENTICATION


class PermissionDeniedError(TaskTrackerError):
    status_code = 403
    default_category = ErrorCategory.AUTHORIZATION


class NotFoundError(TaskTrackerError):
    status_code = 404
    default_category = ErrorCategory.NOT_FOUND


class ConflictError(TaskTrackerError):
    status_code = 409
    default_category = ErrorCategory.CONFLICT


def error_response(message: str, status_code: int, error: Optional[Dict[str, Any]] = None):
    body = {'success': False, 'message': message}
    if error:
        body['error'] = error
    return jsonify(body), status_code


def register_error_handlers(app):
    """Render every error raised inside a request as JSON."""
    from models import db

    @app.errorhandler(TaskTrackerError)
    def handle_tasktracker_error(e: TaskTrackerError):
        if e.status_code >= 500:
            logger.error(f"TaskTracker error: {e.message}")
        return error_response(e.message, e.status_code, e.to_dict())

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e: CSRFError):
        logger.warning(f"CSRF validation failed: {e.description}")
        return error_response(e.description or 'CSRF token missing or invalid', 400,
                              {'category': ErrorCategory.VALIDATION.value})

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e: RateLimitExceeded):
        return error_response('Too many requests. Please try again later.', 429,
                              {'category': ErrorCategory.RATE_LIMIT.value, 'limit': str(e.description)})

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception(f"Unhandled error: {e}")
        db.session.rollback()
        return error_response('Internal server error', 500,
                              {'category': ErrorCategory.UNKNOWN.value})
