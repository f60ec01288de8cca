"""Flask error handlers translating exceptions into JSON responses.

Every error payload carries ``error``, ``code`` and ``correlationId`` and
flags the request session for rollback through ``g.needs_rollback``.
"""

import logging
from typing import Any

from flask import Flask, g, jsonify
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from parish.exceptions import (
    BusinessLogicException,
    ExportFailedException,
    ImportFailedException,
    InvalidOperationException,
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)
from parish.utils import get_current_correlation_id

logger = logging.getLogger(__name__)

_BUSINESS_STATUS_CODES: dict[type[BusinessLogicException], int] = {
    RecordNotFoundException: 404,
    ResourceConflictException: 409,
    InvalidOperationException: 409,
    ValidationException: 400,
    ImportFailedException: 422,
    ExportFailedException: 500,
}


def _error_response(message: str, code: str, status: int, **extra: Any) -> tuple[Any, int]:
    g.needs_rollback = True
    payload: dict[str, Any] = {
        "error": message,
        "code": code,
        "correlationId": get_current_correlation_id(),
    }
    payload.update(extra)
    return jsonify(payload), status


def status_for_business_exception(exc: BusinessLogicException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in _BUSINESS_STATUS_CODES:
            return _BUSINESS_STATUS_CODES[exc_type]  # type: ignore[index]
    return 400


def register_core_error_handlers(app: Flask) -> None:
    """Register handlers for HTTP, validation and unexpected errors."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> Any:
        status = error.code or 500
        return _error_response(
            error.description or error.name,
            error.name.upper().replace(" ", "_"),
            status,
        )

    @app.errorhandler(ValidationError)
    def handle_pydantic_validation_error(error: ValidationError) -> Any:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in error.errors()
        ]
        return _error_response("Validation failed", "VALIDATION_FAILED", 400, details=details)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError) -> Any:
        logger.warning("Integrity error: %s", error.orig)
        return _error_response(
            "The record conflicts with existing data",
            "RESOURCE_CONFLICT",
            409,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Any:
        logger.exception("Unhandled error: %s", error)
        return _error_response("Internal server error", "INTERNAL_ERROR", 500)


def register_business_error_handlers(app: Flask) -> None:
    """Register the handler for domain exceptions."""

    @app.errorhandler(BusinessLogicException)
    def handle_business_exception(error: BusinessLogicException) -> Any:
        status = status_for_business_exception(error)
        if status >= 500:
            logger.error("%s: %s", error.error_code, error.message)
        return _error_response(error.message, error.error_code, status)
