"""
User-facing error messages and contextual logging for the API.

Routes never echo exception text to clients: sanitize_error() logs the
detail and hands back one of GENERIC_MESSAGES. The log helpers fall back
to the module logger outside an app context (CLI helpers, tests).
"""

from __future__ import annotations
import logging

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

GENERIC_MESSAGES = {
    "database": "We couldn't save or load your plant data. Please try again.",
    "validation": "The information provided is invalid. Please check and try again.",
    "not_found": "The requested plant was not found.",
    "network": "Weather service is unreachable right now. Care advice uses your base schedule.",
}

# Caller mistakes; everything else is logged with a traceback
EXPECTED_ERROR_TYPES = {"validation", "not_found"}


def _logger() -> logging.Logger:
    return current_app.logger if has_app_context() else logger


def _with_context(message: str, context: dict) -> str:
    if not context:
        return message
    details = ", ".join(f"{k}={v}" for k, v in context.items())
    return f"{message} | {details}"


def sanitize_error(error: Exception, error_type: str = "database", log_prefix: str = "") -> str:
    """
    Log ``error`` and return the generic message for ``error_type``.

    Example:
        except CareStoreError as e:
            return jsonify({"success": False, "error": sanitize_error(e, "database", "log care")}), 500
    """
    detail = f"{log_prefix}: {error}" if log_prefix else str(error)

    if error_type in EXPECTED_ERROR_TYPES:
        _logger().info(f"Expected error - {detail}")
    else:
        _logger().error(f"Unexpected error - {detail}", exc_info=True)

    return GENERIC_MESSAGES.get(error_type, GENERIC_MESSAGES["database"])


def log_warning(message: str, **context) -> None:
    _logger().warning(_with_context(message, context))


def log_info(message: str, **context) -> None:
    """log_info("Care logged", plant_id="123", care_type="watering")"""
    _logger().info(_with_context(message, context))
