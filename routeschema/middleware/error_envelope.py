"""
Error envelope middleware - one response shape for every failure.

Every failed request gets:
{
    "status": 400,
    "message": "validation error",
    "messages": [...]
}

Dispatch order:
1. ValidationError   -> 400 "validation error", body then query sub-errors
2. ApplicationError  -> its status, its safe message, its messages
3. HTTPException     -> its code, its description ("Generic Error" if empty)
4. Anything else     -> 500 "Internal Server Error", always logged
"""

import logging
from typing import Any, Dict, List, Tuple

from flask import g, jsonify
from werkzeug.exceptions import HTTPException

from ..config import Config
from ..errors import ErrorKind, RouteSchemaError

logger = logging.getLogger('routeschema.errors')

INTERNAL_ERROR_MESSAGE = 'Internal Server Error'
GENERIC_ERROR_MESSAGE = 'Generic Error'
VALIDATION_ERROR_MESSAGE = 'validation error'


def _payload(status: int, message: str, messages: List[Any] = None) -> Dict[str, Any]:
    return {
        "status": status,
        "message": message,
        "messages": list(messages) if messages else [],
    }


def _request_id():
    try:
        return getattr(g, 'request_id', None)
    except RuntimeError:
        # Outside an app context
        return None


def _log(error: Exception, status: int) -> None:
    if status in Config.CLIENT_ERROR_STATUSES:
        return
    diagnostic = getattr(error, 'err', None) or error
    logger.error(
        f"Request failed: status={status} error={diagnostic!r}",
        exc_info=diagnostic if isinstance(diagnostic, BaseException) else None,
        extra={
            "event": "request_error",
            "status": status,
            "request_id": _request_id(),
            "error_type": type(error).__name__,
        }
    )


def translate(error: BaseException) -> Tuple[Dict[str, Any], int]:
    """
    Map a failure onto the uniform error payload.

    Args:
        error: Anything raised while handling a request

    Returns:
        Tuple of (payload dict, status code)
    """
    kind = error.kind if isinstance(error, RouteSchemaError) else None

    if kind is ErrorKind.VALIDATION:
        return _payload(400, VALIDATION_ERROR_MESSAGE, error.collected()), 400

    if kind is ErrorKind.APPLICATION:
        if error.log:
            _log(error, error.status)
        return _payload(error.status, error.safe, error.messages), error.status

    if isinstance(error, HTTPException) and error.code:
        message = error.description or GENERIC_ERROR_MESSAGE
        _log(error, error.code)
        return _payload(error.code, message), error.code

    logger.error(
        f"Unhandled error: {error!r}",
        exc_info=error,
        extra={
            "event": "unhandled_error",
            "request_id": _request_id(),
            "error_type": type(error).__name__,
        }
    )
    return _payload(500, INTERNAL_ERROR_MESSAGE), 500


def respond(error: BaseException):
    """Build the Flask response for a failure."""
    payload, status = translate(error)
    response = jsonify(payload)
    response.status_code = status

    request_id = _request_id()
    if request_id:
        response.headers['X-Request-ID'] = request_id

    return response


def setup_error_handlers(router) -> None:
    """
    Register the error translator as the terminal error handler.

    Args:
        router: Flask app or Blueprint
    """
    router.register_error_handler(Exception, respond)
