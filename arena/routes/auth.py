from flask import Blueprint, current_app
from flask_login import login_required

from ..auth import get_current_user
from ..responses import handles_errors, success
from ..validation import get_json_body

bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@bp.route('/register', methods=['POST'])
@handles_errors('Server error during registration')
def register():
    data = get_json_body()
    user, tokens = current_app.accounts.register(
        email=data.get('email'),
        full_name=data.get('fullName'),
        password=data.get('password'),
        role=data.get('role'),
    )
    return success('User registered successfully', {'user': user.to_dict(), **tokens}, 201)


@bp.route('/login', methods=['POST'])
@handles_errors('Server error during login')
def login():
    data = get_json_body()
    user, tokens = current_app.accounts.login(data.get('email'), data.get('password'))
    return success('Login successful', {'user': user.to_dict(), **tokens})


@bp.route('/refresh', methods=['POST'])
@handles_errors('Server error during token refresh')
def refresh():
    data = get_json_body()
    tokens = current_app.accounts.refresh(data.get('refreshToken'))
    return success('Token refreshed successfully', tokens)


@bp.route('/profile', methods=['GET'])
@login_required
@handles_errors('Server error while fetching profile')
def get_profile():
    user = current_app.accounts.get_profile(get_current_user().id)
    return success('Profile retrieved successfully', {'user': user.to_dict()})


@bp.route('/profile', methods=['PUT'])
@login_required
@handles_errors('Server error while updating profile')
def update_profile():
    user = current_app.accounts.update_profile(get_current_user().id, get_json_body())
    return success('Profile updated successfully', {'user': user.to_dict()})


@bp.route('/change-password', methods=['PUT'])
@login_required
@handles_errors('Server error while changing password')
def change_password():
    data = get_json_body()
    current_app.accounts.change_password(
        get_current_user().id,
        data.get('currentPassword'),
        data.get('newPassword'),
    )
    return success('Password changed successfully')


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    # Tokens are stateless; the client discards them
    return success('Logout successful')
