"""Error taxonomy shared by every route.

Handlers raise one of the ``ApiError`` subclasses; the handlers installed by
``register_error_handlers`` turn them into ``{"error": message}`` responses.
Anything else is logged with its traceback and reported as a generic 500.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from models import db

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ApiError(Exception):
    status = 500

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class BadRequest(ApiError):
    status = 400


class Unauthorized(ApiError):
    status = 401

    def __init__(self, message="Unauthorized"):
        super().__init__(message)


class Forbidden(ApiError):
    status = 403


class NotFound(ApiError):
    status = 404


class InternalError(ApiError):
    status = 500

    def __init__(self, message=INTERNAL_ERROR_MESSAGE):
        super().__init__(message)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(err):
        if err.status >= 500:
            db.session.rollback()
            logger.error("request failed: %s", err.message)
            return jsonify({"error": INTERNAL_ERROR_MESSAGE}), err.status
        return jsonify({"error": err.message}), err.status

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(err):
        max_mb = app.config["MAX_UPLOAD_BYTES"] // (1024 * 1024)
        return jsonify({"error": f"File size too large. Maximum size is {max_mb}MB"}), 400

    @app.errorhandler(HTTPException)
    def _http_error(err):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def _unexpected(err):
        db.session.rollback()
        logger.exception("unhandled error: %s", err)
        return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500
