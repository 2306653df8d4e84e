"""
Notifications API Routes
"""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services import notification_service
from utils.validation import get_json_body, optional_bool, optional_text, require_text

api_notifications_bp = Blueprint('api_notifications', __name__, url_prefix='/api/v1/notifications')


@api_notifications_bp.route('', methods=['GET'])
@login_required
def list_notifications():
    unread_only = request.args.get('unread_only', 'false').lower() == 'true'
    limit = max(1, min(request.args.get('limit', 50, type=int), 200))
    notifications = notification_service.get_notifications(current_user.id, unread_only, limit)
    return jsonify({'success': True, 'notifications': [n.to_dict() for n in notifications]})


@api_notifications_bp.route('/unread-count', methods=['GET'])
@login_required
def unread_count():
    return jsonify({'success': True, 'count': notification_service.get_unread_count(current_user.id)})


@api_notifications_bp.route('/counts', methods=['GET'])
@login_required
def counts():
    return jsonify({'success': True, 'counts': notification_service.get_counts(current_user.id)})


@api_notifications_bp.route('/<int:notification_id>', methods=['GET'])
@login_required
def get_notification(notification_id):
    notification = notification_service.get_notification(current_user.id, notification_id)
    return jsonify({'success': True, 'notification': notification.to_dict()})


@api_notifications_bp.route('', methods=['POST'])
@login_required
def create_notification():
    data = get_json_body()
    notification = notification_service.create_notification(
        current_user.id,
        title=require_text(data.get('title'), 'title', 100),
        message=require_text(data.get('message'), 'message', 1000),
        notification_type=optional_text(data.get('notification_type'), 'notification_type', 32) or 'info',
        is_important=optional_bool(data.get('is_important'), 'is_important'),
    )
    return jsonify({'success': True, 'notification': notification.to_dict()}), 201


@api_notifications_bp.route('/<int:notification_id>/read', methods=['PUT'])
@login_required
def mark_read(notification_id):
    notification = notification_service.mark_as_read(current_user.id, notification_id)
    return jsonify({'success': True, 'notification': notification.to_dict()})


@api_notifications_bp.route('/mark-all-read', methods=['PUT'])
@login_required
def mark_all_read():
    updated = notification_service.mark_all_as_read(current_user.id)
    return jsonify({'success': True, 'updated': updated})


@api_notifications_bp.route('/<int:notification_id>', methods=['DELETE'])
@login_required
def delete_notification(notification_id):
    notification_service.delete_notification(current_user.id, notification_id)
    return jsonify({'success': True, 'message': 'Notification deleted'})


@api_notifications_bp.route('', methods=['DELETE'])
@login_required
def clear_read():
    deleted = notification_service.clear_read(current_user.id)
    return jsonify({'success': True, 'deleted': deleted})
