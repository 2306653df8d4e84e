"""
Notification Broadcaster
========================
Pushes notification and task events to connected clients over Socket.IO.
Each user has a private room ``user_<id>`` on the ``/notifications`` namespace.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)

NAMESPACE = '/notifications'


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


@dataclass
class TaskEvent:
    """Structured task change pushed to the owner's open clients."""
    event_type: str  # task_created, task_updated, task_completed, task_deleted
    user_id: int
    task_id: int
    sequence_id: str
    timestamp: str
    changes: Dict[str, Any]

    def to_dict(self) -> Dict:
        return asdict(self)


class NotificationBroadcaster:
    """
    Singleton wrapper around the Flask-SocketIO server.

    Broadcasting is best effort: emit failures are logged and never abort the
    request that produced the event.
    """

    _instance = None
    _socketio = None
    _sequence_counter = 0

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def init_app(cls, socketio) -> None:
        """Initialize with Flask-SocketIO instance."""
        cls._socketio = socketio
        logger.info("✅ NotificationBroadcaster initialized")

    @classmethod
    def _generate_sequence_id(cls) -> str:
        cls._sequence_counter += 1
        timestamp = datetime.utcnow().strftime('%Y%m%d%H%M%S%f')
        return f"seq_{timestamp}_{cls._sequence_counter}"

    @classmethod
    def _emit(cls, event: str, payload: Dict[str, Any], user_id: int) -> bool:
        if not cls._socketio:
            logger.warning("SocketIO not initialized, skipping broadcast")
            return False
        try:
            cls._socketio.emit(event, payload, room=user_room(user_id), namespace=NAMESPACE)
            return True
        except Exception as e:
            logger.error(f"Failed to broadcast {event} to user {user_id}: {e}")
            return False

    @classmethod
    def broadcast_notification(cls, user_id: int, notification: Dict[str, Any],
                               unread_count: Optional[int] = None) -> bool:
        sent = cls._emit('notification', notification, user_id)
        if sent and unread_count is not None:
            cls._emit('unread_count', {'count': unread_count}, user_id)
        logger.debug(f"📡 Notification {notification.get('id')} pushed to user {user_id}")
        return sent

    @classmethod
    def broadcast_task_event(cls, user_id: int, task_id: int, event_type: str,
                             changes: Optional[Dict[str, Any]] = None) -> bool:
        event = TaskEvent(
            event_type=event_type,
            user_id=user_id,
            task_id=task_id,
            sequence_id=cls._generate_sequence_id(),
            timestamp=datetime.utcnow().isoformat(),
            changes=changes or {},
        )
        return cls._emit('task_event', event.to_dict(), user_id)

    @classmethod
    def broadcast_unread_count(cls, user_id: int, count: int) -> bool:
        return cls._emit('unread_count', {'count': count}, user_id)


# Singleton instance
notification_broadcaster = NotificationBroadcaster()
