import math
from dataclasses import dataclass

from .errors import ValidationError

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps (page - 1) * limit well inside the database's integer range
MAX_PAGE = 1_000_000


@dataclass
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> dict:
        return {
            'current': self.page,
            'pages': math.ceil(total / self.limit),
            'total': total,
        }


def _positive_int(raw, default: int, name: str) -> int:
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Query parameter '{name}' must be a positive integer")
    if value < 1:
        raise ValidationError(f"Query parameter '{name}' must be a positive integer")
    return value


def parse_page_args(args, default_limit: int = DEFAULT_LIMIT) -> PageRequest:
    """Read page/limit from request args; limit is capped at MAX_LIMIT."""
    page = _positive_int(args.get('page'), 1, 'page')
    if page > MAX_PAGE:
        raise ValidationError(f"Query parameter 'page' must be at most {MAX_PAGE}")
    limit = _positive_int(args.get('limit'), default_limit, 'limit')
    return PageRequest(page=page, limit=min(limit, MAX_LIMIT))


def parse_limit(args, default: int) -> int:
    return min(_positive_int(args.get('limit'), default, 'limit'), MAX_LIMIT)
