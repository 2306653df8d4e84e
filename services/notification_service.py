"""
Notification Service
Persists user notifications and pushes them to connected clients.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, List

from sqlalchemy import select, func, update, delete, event
from sqlalchemy.orm import Session

from models import db, Notification
from services.notification_broadcaster import notification_broadcaster
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)

PENDING_PUSHES_KEY = 'pending_notification_pushes'


@event.listens_for(Session, 'after_commit')
def _push_committed_notifications(session):
    for user_id, payload, unread_count in session.info.pop(PENDING_PUSHES_KEY, []):
        notification_broadcaster.broadcast_notification(user_id, payload, unread_count=unread_count)


@event.listens_for(Session, 'after_rollback')
def _discard_rolled_back_notifications(session):
    session.info.pop(PENDING_PUSHES_KEY, None)


def create_notification(
    user_id: int,
    title: str,
    message: str,
    notification_type: str = 'info',
    is_important: bool = False,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None,
    commit: bool = True
) -> Notification:
    """
    Store a notification and broadcast it to the user's room once committed.

    With ``commit=False`` the row is only flushed so it joins the caller's
    transaction; the push is queued on the session and sent by the caller's
    commit, or dropped if the transaction rolls back.
    """
    notification = Notification(
        user_id=user_id,
        title=title[:100],
        message=message,
        notification_type=notification_type,
        is_important=is_important,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
    )
    db.session.add(notification)
    db.session.flush()
    db.session.info.setdefault(PENDING_PUSHES_KEY, []).append(
        (user_id, notification.to_dict(), get_unread_count(user_id))
    )
    if commit:
        db.session.commit()
    logger.debug(f"Notification '{notification_type}' created for user {user_id}")
    return notification


def get_notifications(user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return list(db.session.execute(stmt).scalars())


def get_notification(user_id: int, notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFoundError('Notification not found')
    return notification


def get_unread_count(user_id: int) -> int:
    return db.session.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
    ) or 0


def get_counts(user_id: int) -> Dict:
    rows = db.session.execute(
        select(Notification.notification_type, func.count(Notification.id))
        .where(Notification.user_id == user_id)
        .group_by(Notification.notification_type)
    ).all()
    important = db.session.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_important.is_(True),
            Notification.is_read.is_(False),
        )
    ) or 0
    return {
        'total': sum(count for _, count in rows),
        'unread': get_unread_count(user_id),
        'important': important,
        'by_type': {notification_type: count for notification_type, count in rows},
    }


def mark_as_read(user_id: int, notification_id: int) -> Notification:
    notification = get_notification(user_id, notification_id)
    notification.mark_read()
    db.session.commit()
    notification_broadcaster.broadcast_unread_count(user_id, get_unread_count(user_id))
    return notification


def mark_all_as_read(user_id: int) -> int:
    result = db.session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.utcnow())
    )
    db.session.commit()
    notification_broadcaster.broadcast_unread_count(user_id, 0)
    logger.info(f"Marked {result.rowcount} notifications read for user {user_id}")
    return result.rowcount


def delete_notification(user_id: int, notification_id: int) -> None:
    notification = get_notification(user_id, notification_id)
    db.session.delete(notification)
    db.session.commit()


def clear_read(user_id: int) -> int:
    result = db.session.execute(
        delete(Notification).where(Notification.user_id == user_id, Notification.is_read.is_(True))
    )
    db.session.commit()
    return result.rowcount
