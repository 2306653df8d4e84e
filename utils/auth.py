"""
Authentication and authorization utilities.

Role-check decorator plus the password/email rules shared by registration, profile and admin flows.
"""

import re
from functools import wraps
from flask import jsonify
from flask_login import login_required, current_user

from utils.errors import ValidationError
from utils.validation import optional_text

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def admin_required(f):
    """
    Decorator to protect routes requiring admin privileges.

    Returns 401 for anonymous callers (login_required), 403 when the account
    is inactive or not an admin.
    """
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.active:
            return jsonify({'success': False, 'message': 'Account is inactive'}), 403
        if not current_user.is_admin:
            return jsonify({'success': False, 'message': 'Admin privileges required'}), 403
        return f(*args, **kwargs)

    return decorated_function


def validate_email(email: str) -> str:
    email = (optional_text(email, 'email', 255) or '').strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Invalid email address')
    return email


def validate_username(username: str) -> str:
    username = (optional_text(username, 'username', 255) or '').strip()
    if len(username) < 3 or len(username) > 50:
        raise ValidationError('Username must be between 3 and 50 characters')
    return username


def validate_password(password: str) -> str:
    """Password must be 8+ chars with at least one letter and one digit."""
    password = optional_text(password, 'password', 255) or ''
    if len(password) < 8:
        raise ValidationError('Password must be at least 8 characters long')
    if not re.search(r'[A-Za-z]', password):
        raise ValidationError('Password must contain at least one letter')
    if not re.search(r'[0-9]', password):
        raise ValidationError('Password must contain at least one number')
    return password
