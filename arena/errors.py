from typing import List, Optional


class ApiError(Exception):
    """Base error carrying the HTTP status and envelope fields."""
    
    status_code = 500
    
    def __init__(self, message: str, errors: Optional[List[str]] = None, status_code: int = None):
        self.message = message
        self.errors = errors
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(ApiError):
    status_code = 400


class RecordValidationError(ValidationError):
    """A document failed its own field validation inside the data store."""
    
    def __init__(self, errors: List[str]):
        super().__init__('Validation failed', errors=list(errors))


class BusinessRuleError(ApiError):
    status_code = 400


class ConflictError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


# Registration refusals shared by the managers and the stores
TOURNAMENT_NOT_FOUND = 'Tournament not found'
REGISTRATION_CLOSED = 'Tournament is not open for registration'
TOURNAMENT_FULL = 'Tournament is full'
ALREADY_REGISTERED = 'You are already registered for this tournament'
DUPLICATE_REGISTRATION = 'Duplicate registration detected'
