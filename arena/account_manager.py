import logging
from typing import Tuple

from werkzeug.security import generate_password_hash, check_password_hash

from .documents import User, Role
from .errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .stores import DataStore
from .tokens import REFRESH, TokenError, decode_token, issue_token_pair
from .validation import clean_text

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
SELF_SERVICE_ROLES = (Role.USER.value, Role.ORGANIZER.value)
INVALID_CREDENTIALS = 'Invalid credentials'


class AccountManager:
    """
    Manages user accounts:
    - Registration and login with hashed passwords
    - Access/refresh token issuance
    - Profile reads and updates for the authenticated user
    """

    def __init__(self, store: DataStore):
        self.store = store

    def register(self, email: str, full_name: str, password: str, role: str = None) -> Tuple[User, dict]:
        """Create a user account and return it with a fresh token pair."""
        email = (clean_text(email, 'Email') or '').lower()
        full_name = clean_text(full_name, 'Full name')
        if not email or not full_name or not password:
            raise ValidationError('Email, full name, and password are required')
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

        role = role or Role.USER.value
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError(f'Role must be one of: {", ".join(SELF_SERVICE_ROLES)}')

        if self.store.find_one('user', email=email):
            raise ConflictError('User with this email already exists')

        user = self.store.insert('user', User(
            email=email,
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role,
        ))
        logger.info("Registered user %s with role %s", user.id, user.role)
        return user, issue_token_pair(user.id)

    def create_admin(self, email: str, full_name: str, password: str) -> User:
        """Create an administrator account (command line only)."""
        email = (clean_text(email, 'Email') or '').lower()
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        user = self.store.insert('user', User(
            email=email,
            full_name=clean_text(full_name, 'Full name') or 'Administrator',
            password_hash=generate_password_hash(password),
            role=Role.ADMIN.value,
        ))
        logger.info("Created admin user %s", user.id)
        return user

    def login(self, email: str, password: str) -> Tuple[User, dict]:
        if not email or not password:
            raise ValidationError('Email and password are required')

        # Same message for unknown email and wrong password
        user = self.store.find_one('user', email=str(email).strip().lower())
        if user is None or not check_password_hash(user.password_hash, str(password)):
            raise AuthenticationError(INVALID_CREDENTIALS)

        return user, issue_token_pair(user.id)

    def refresh(self, refresh_token: str) -> dict:
        if not refresh_token:
            raise ValidationError('Refresh token is required')
        try:
            user_id = decode_token(refresh_token, REFRESH)
        except TokenError:
            raise AuthenticationError('Invalid or expired refresh token')

        if self.store.get('user', user_id) is None:
            raise AuthenticationError('Invalid or expired refresh token')
        return issue_token_pair(user_id)

    def get_profile(self, user_id: str) -> User:
        user = self.store.get('user', user_id)
        if user is None:
            raise NotFoundError('User not found')
        return user

    def update_profile(self, user_id: str, data: dict) -> User:
        changes = {}
        full_name = clean_text(data.get('fullName'), 'Full name')
        if full_name:
            changes['full_name'] = full_name
        if 'avatarUrl' in data:
            changes['avatar_url'] = clean_text(data.get('avatarUrl'), 'Avatar URL')

        user = self.store.update('user', user_id, changes)
        if user is None:
            raise NotFoundError('User not found')
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError('Current password and new password are required')
        if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

        user = self.get_profile(user_id)
        if not check_password_hash(user.password_hash, str(current_password)):
            raise ValidationError('Current password is incorrect')

        self.store.update('user', user_id, {'password_hash': generate_password_hash(new_password)})
        logger.info("Password changed for user %s", user_id)
