"""
Error Types
Typed failures raised by the services and their JSON rendering
"""
import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class QuizGraderError(Exception):
    """Base class for client-visible failures"""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


class NotFoundError(QuizGraderError):
    """Referenced attempt, answer, quiz or classroom does not exist"""
    status_code = 404


class AuthorizationError(QuizGraderError):
    """Caller lacks the required role relationship"""
    status_code = 403


class ConflictError(QuizGraderError):
    """Operation conflicts with the current state (e.g. already submitted)"""
    status_code = 409


class ValidationError(QuizGraderError):
    """Malformed payload, out-of-range points or wrong question type"""
    status_code = 400


def register_error_handlers(app):
    """Render service errors as JSON responses"""

    @app.errorhandler(QuizGraderError)
    def handle_quizgrader_error(error):
        logger.info("%s: %s", type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405
