"""
Authentication Routes for TaskTracker
Session-based registration, login, logout and profile management (JSON API).

State-changing requests need the CSRF token from GET /api/v1/auth/csrf,
sent back in the X-CSRFToken header.
"""

import logging

from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from extensions import limiter
from services import auth_service
from services.gamification_service import gamification_service
from utils.errors import ValidationError
from utils.validation import get_json_body, optional_bool

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/v1/auth')


def _auth_limit():
    return current_app.config.get('RATELIMIT_AUTH', '5 per minute')


@auth_bp.route('/csrf', methods=['GET'])
def csrf_token():
    return jsonify({'success': True, 'csrf_token': generate_csrf()})


@auth_bp.route('/register', methods=['POST'])
@limiter.limit(_auth_limit)
def register():
    user = auth_service.register_user(get_json_body())
    login_user(user)
    return jsonify({'success': True, 'message': 'Registration successful', 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(_auth_limit)
def login():
    data = get_json_body()
    identifier = data.get('email_or_username') or data.get('email') or data.get('username')
    if not identifier or not data.get('password'):
        raise ValidationError('email_or_username and password are required')

    user = auth_service.authenticate(identifier, data.get('password'))
    login_user(user, remember=optional_bool(data.get('remember'), 'remember'))
    logger.info(f"User logged in: {user.username}")
    return jsonify({'success': True, 'message': 'Login successful', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logger.info(f"User logged out: {current_user.username}")
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out'})


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    progress = gamification_service.get_user_progress(current_user.id)
    return jsonify({'success': True, 'user': current_user.to_dict(), 'progress': progress.to_dict()})


@auth_bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    user = auth_service.update_profile(current_user, get_json_body())
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    data = get_json_body()
    auth_service.change_password(current_user, data.get('current_password'), data.get('new_password'))
    return jsonify({'success': True, 'message': 'Password changed'})
