from flask import jsonify
from sqlalchemy.exc import IntegrityError, OperationalError


class AppError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(AppError):
    status_code = 400
    code = "invalid_argument"


class InvalidCode(AppError):
    status_code = 400
    code = "invalid_code"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"


class NotFound(AppError):
    status_code = 404
    code = "not_found"


class InvalidTransition(AppError):
    status_code = 409
    code = "invalid_transition"


class Conflict(AppError):
    status_code = 409
    code = "conflict"


class InsufficientFunds(AppError):
    status_code = 422
    code = "insufficient_funds"


class TooManyAttempts(AppError):
    status_code = 429
    code = "too_many_attempts"


class Unavailable(AppError):
    status_code = 503
    code = "unavailable"


def _error(message, status_code, code):
    return jsonify({"error": message, "code": code}), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        if err.status_code >= 500:
            app.logger.error("%s: %s", err.code, err.message)
        return _error(err.message, err.status_code, err.code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error")
        return _error("Conflict. Resource already exists.", 409, Conflict.code)

    @app.errorhandler(OperationalError)
    def handle_operational_error(_err):
        app.logger.exception("Database unavailable")
        return _error("Service temporarily unavailable.", 503, Unavailable.code)

    @app.errorhandler(400)
    def bad_request(_err):
        return _error("Bad request", 400, "bad_request")

    @app.errorhandler(401)
    def unauthorized(_err):
        return _error("Unauthorized", 401, "unauthorized")

    @app.errorhandler(403)
    def forbidden(_err):
        return _error("Forbidden", 403, Forbidden.code)

    @app.errorhandler(404)
    def not_found(_err):
        return _error("Not found", 404, NotFound.code)

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return _error("Method not allowed", 405, "method_not_allowed")

    @app.errorhandler(413)
    def payload_too_large(_err):
        return _error("Upload too large", 413, "payload_too_large")

    @app.errorhandler(429)
    def rate_limited(_err):
        return _error("Too many requests. Slow down.", 429, "rate_limited")

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return _error("Internal server error", 500, "internal")
