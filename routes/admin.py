"""
Admin Routes for TaskTracker
User administration, dashboard metrics and system health for admins.
"""

import logging

from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user

from routes.health_production import check_database_health, check_cache_health, get_system_stats, get_uptime_seconds
from services import admin_service
from utils.auth import admin_required
from utils.errors import ValidationError
from utils.validation import get_json_body, optional_bool, pagination_dict

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/v1/admin')


@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    pagination = admin_service.list_users(
        search=request.args.get('search'),
        page=request.args.get('page', 1, type=int),
        per_page=request.args.get('per_page', 20, type=int),
    )
    return jsonify({
        'success': True,
        'users': [u.to_dict() for u in pagination.items],
        'pagination': pagination_dict(pagination),
    })


@admin_bp.route('/users', methods=['POST'])
@admin_required
def create_user():
    user = admin_service.create_user(get_json_body())
    logger.info(f"Admin {current_user.id} created user {user.id} ({user.role})")
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@admin_bp.route('/users/<int:user_id>', methods=['GET'])
@admin_required
def get_user(user_id):
    return jsonify({'success': True, 'user': admin_service.get_user(user_id).to_dict()})


@admin_bp.route('/users/<int:user_id>/role', methods=['PUT'])
@admin_required
def change_role(user_id):
    role = get_json_body().get('role')
    if not role:
        raise ValidationError('role is required')
    user = admin_service.change_role(current_user, user_id, role)
    return jsonify({'success': True, 'user': user.to_dict()})


@admin_bp.route('/users/<int:user_id>/active', methods=['PUT'])
@admin_required
def set_active(user_id):
    data = get_json_body()
    if 'active' not in data:
        raise ValidationError('active is required')
    user = admin_service.set_active(current_user, user_id, optional_bool(data['active'], 'active'))
    return jsonify({'success': True, 'user': user.to_dict()})


@admin_bp.route('/dashboard', methods=['GET'])
@admin_required
def dashboard():
    return jsonify({'success': True, 'dashboard': admin_service.get_dashboard()})


@admin_bp.route('/system-health', methods=['GET'])
@admin_required
def system_health():
    return jsonify({
        'success': True,
        'database': check_database_health(),
        'cache': check_cache_health(),
        'system': get_system_stats(),
        'uptime_seconds': round(get_uptime_seconds(), 2),
        'blueprints': current_app.extensions['blueprint_registry'].get_status(),
        'startup': current_app.extensions['startup_report'].to_dict(),
    })
