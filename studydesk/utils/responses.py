"""JSON error responses shared by the route modules."""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import jsonify
from pymongo.errors import PyMongoError

from ..config import ConfigError
from ..validation import first_error

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"
INTERNAL_ERROR = "Internal server error"


def json_error(message: str, status: int, details: Dict[str, Any] | None = None):
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def validation_error(errors: Dict[str, str]):
    """400 response carrying the first violated rule as the message."""

    details = {k: v for k, v in errors.items() if k != "_global"}
    return json_error(first_error(errors), 400, details or None)


def not_found(entity: str):
    return json_error(f"{entity} not found", 404)


def handle_config_error(exc: ConfigError):
    logger.exception("Missing configuration for MongoDB")
    return json_error(INTERNAL_ERROR, 500)


def handle_db_error(action: str, exc: PyMongoError):
    logger.exception("%s due to MongoDB error", action)
    return json_error(INTERNAL_ERROR, 500)


__all__ = [
    "UNAUTHORIZED",
    "INTERNAL_ERROR",
    "json_error",
    "validation_error",
    "not_found",
    "handle_config_error",
    "handle_db_error",
]
