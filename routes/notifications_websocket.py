"""
Notifications WebSocket Namespace

Namespace: /notifications
Events:
- connect: authenticated clients join their private room ``user_<id>``
- disconnect: leave the room
- subscribe: reply with the current unread count
- mark_read: mark one notification read and push the new unread count
"""

import logging
from flask import request
from flask_login import current_user
from flask_socketio import emit, join_room, leave_room

from services import notification_service
from services.notification_broadcaster import NAMESPACE, user_room
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def get_socket_sid() -> str:
    """Get Socket.IO session ID from request context."""
    return request.sid  # type: ignore[attr-defined]


def register_notifications_namespace(socketio):

    @socketio.on('connect', namespace=NAMESPACE)
    def handle_connect():
        if not current_user.is_authenticated:
            logger.info(f"Rejected unauthenticated notifications connection {get_socket_sid()}")
            return False
        join_room(user_room(current_user.id))
        emit('connected', {
            'user_id': current_user.id,
            'unread_count': notification_service.get_unread_count(current_user.id),
        })
        logger.info(f"Notifications client connected: user {current_user.id} ({get_socket_sid()})")

    @socketio.on('disconnect', namespace=NAMESPACE)
    def handle_disconnect():
        if current_user.is_authenticated:
            leave_room(user_room(current_user.id))
        logger.debug(f"Notifications client disconnected: {get_socket_sid()}")

    @socketio.on('subscribe', namespace=NAMESPACE)
    def handle_subscribe(data=None):
        if not current_user.is_authenticated:
            return
        emit('unread_count', {'count': notification_service.get_unread_count(current_user.id)})

    @socketio.on('mark_read', namespace=NAMESPACE)
    def handle_mark_read(data):
        if not current_user.is_authenticated:
            return
        notification_id = (data or {}).get('notification_id')
        try:
            notification_service.mark_as_read(current_user.id, int(notification_id))
        except (NotFoundError, TypeError, ValueError):
            emit('error', {'message': 'Notification not found'})

    logger.info("✅ Notifications WebSocket namespace registered")
