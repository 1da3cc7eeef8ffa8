import logging
from functools import wraps
from typing import List, Optional

from flask import current_app, jsonify

from .errors import ApiError

logger = logging.getLogger(__name__)


def success(message: str, data: dict = None, status: int = 200):
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def failure(message: str, status: int, errors: Optional[List[str]] = None, detail: str = None):
    body = {'success': False, 'message': message}
    if errors:
        body['errors'] = errors
    if detail is not None:
        body['error'] = detail
    return jsonify(body), status


def handles_errors(server_message: str):
    """
    Map everything a handler raises onto the response envelope.

    ApiError subclasses keep their status and messages; anything else is
    logged and reported as a 500 with server_message.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ApiError as e:
                return failure(e.message, e.status_code, e.errors)
            except Exception as e:
                logger.exception(server_message)
                detail = str(e) if current_app.config.get('EXPOSE_ERROR_DETAIL') else None
                return failure(server_message, 500, detail=detail)
        return wrapper
    return decorator
