"""
Error Handling Middleware
Centralized error handling and logging
"""
import logging
import traceback
from flask import request, jsonify
from werkzeug.exceptions import HTTPException

from manage_easy.utils.validators import Helpers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised by a handler and rendered as a JSON error response"""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ErrorHandler:
    """Centralized error handling service"""

    @staticmethod
    def handle_api_error(error: ApiError) -> tuple:
        if error.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {error.message}")
        else:
            logger.warning(f"{request.method} {request.path} rejected ({error.status_code}): {error.message}")
        return jsonify(Helpers.build_error_response(error.message)), error.status_code

    @staticmethod
    def handle_http_error(error: HTTPException) -> tuple:
        logger.info(f"{request.method} {request.path}: {error.code} {error.name}")
        return jsonify(Helpers.build_error_response(error.description or error.name)), error.code

    @staticmethod
    def handle_generic_error(error: Exception) -> tuple:
        """Handle generic errors"""
        logger.error(f"Unexpected error: {str(error)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify(Helpers.build_error_response(str(error) or "An unexpected error occurred")), 500


def register_error_handlers(app):
    """Register error handlers with Flask app"""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return ErrorHandler.handle_api_error(error)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return ErrorHandler.handle_http_error(error)

    @app.errorhandler(Exception)
    def handle_unhandled_exception(error):
        return ErrorHandler.handle_generic_error(error)
