from flask import jsonify
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from gomoto.extensions import db


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


def error_response(message, status_code, errors=None):
    body = {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
    }
    if errors:
        body["errors"] = errors
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return error_response(err.message, err.status_code, err.errors)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        db.session.rollback()
        app.logger.warning("Database integrity error")
        return error_response("Conflict. Resource already exists.", 409)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(_err):
        db.session.rollback()
        app.logger.exception("Database error")
        return error_response("Internal server error", 500)

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        messages = {
            400: "Bad request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not found",
            405: "Method not allowed",
            429: "Too many requests",
        }
        return error_response(messages.get(err.code, err.name), err.code)

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return error_response("Internal server error", 500)
