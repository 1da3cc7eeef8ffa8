from functools import wraps

from flask import current_app
from flask_login import LoginManager, current_user

from .documents import User
from .responses import failure
from .tokens import TokenError, decode_token

login_manager = LoginManager()


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve 'Authorization: Bearer <token>' into the user document."""
    scheme, _, token = req.headers.get('Authorization', '').partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None

    try:
        user_id = decode_token(token.strip())
    except TokenError:
        return None
    return current_app.store.get('user', user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return failure('Access denied. Authentication required.', 401)


def roles_required(*roles: str):
    """Require an authenticated user holding one of the given roles."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()
            if current_user.role not in roles:
                return failure('Access denied. Insufficient permissions.', 403)
            return func(*args, **kwargs)
        return wrapper
    return decorator


def get_current_user() -> User:
    return current_user._get_current_object()


def get_optional_user():
    """The authenticated user, or None for anonymous requests."""
    return get_current_user() if current_user.is_authenticated else None
