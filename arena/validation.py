"""Parsing helpers for request payloads. All failures raise ValidationError."""
from datetime import datetime, timezone
from typing import List, Optional

from flask import request

from .documents import is_valid_id
from .errors import ValidationError

# Integer columns are 32-bit signed
MAX_INT = 2 ** 31 - 1


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def clean_text(value, label: str = 'value') -> Optional[str]:
    """Strip a string field; empty strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{label} must be a string')
    value = value.strip()
    return value or None


def parse_datetime(value, label: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a naive UTC datetime."""
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ValidationError(f'Invalid {label}')
    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f'Invalid {label}')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_int(value, label: str, minimum: int = None, maximum: int = MAX_INT) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{label} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'{label} must be an integer')
    if isinstance(value, float) and number != value:
        raise ValidationError(f'{label} must be an integer')
    if minimum is not None and number < minimum:
        raise ValidationError(f'{label} must be at least {minimum}')
    if maximum is not None and number > maximum:
        raise ValidationError(f'{label} must be at most {maximum}')
    return number


def require_id(value, label: str) -> str:
    if not is_valid_id(value):
        raise ValidationError(f'Invalid {label}')
    return value


def parse_url_list(value, label: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f'{label} must be a list of URLs')
    return [v.strip() for v in value if v.strip()]
