"""
Admin Service
User administration and the admin dashboard metrics.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from sqlalchemy import select, func, or_

from models import db, User, TaskItem, FocusSession, PointTransaction
from models.user import VALID_ROLES, ROLE_ADMIN
from services import auth_service
from utils.errors import NotFoundError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


def list_users(search: Optional[str] = None, page: int = 1, per_page: int = 20):
    stmt = select(User)
    if search:
        pattern = f'%{search.strip().lower()}%'
        stmt = stmt.where(or_(func.lower(User.username).like(pattern), func.lower(User.email).like(pattern)))
    return db.paginate(stmt.order_by(User.created_at.desc(), User.id.desc()),
                       page=page, per_page=min(per_page, 100), error_out=False)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def create_user(data: Dict) -> User:
    return auth_service.register_user(data, role=data.get('role') or 'user')


def change_role(admin: User, user_id: int, role: str) -> User:
    """Only admins reach this; an admin cannot remove their own admin role."""
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    user = get_user(user_id)
    if user.id == admin.id and role != ROLE_ADMIN:
        raise ConflictError('You cannot remove your own admin role')
    user.role = role
    db.session.commit()
    logger.info(f"Admin {admin.id} changed role of user {user.id} to {role}")
    return user


def set_active(admin: User, user_id: int, active: bool) -> User:
    user = get_user(user_id)
    if user.id == admin.id and not active:
        raise ConflictError('You cannot deactivate your own account')
    user.active = bool(active)
    db.session.commit()
    logger.info(f"Admin {admin.id} set user {user.id} active={user.active}")
    return user


def _count(stmt) -> int:
    return db.session.scalar(stmt) or 0


def get_dashboard() -> Dict[str, Any]:
    now = datetime.utcnow()
    day_ago, week_ago, month_ago = now - timedelta(days=1), now - timedelta(days=7), now - timedelta(days=30)

    def active_since(since):
        return _count(select(func.count(User.id)).where(User.last_login >= since))

    total_tasks = _count(select(func.count(TaskItem.id)))
    completed_tasks = _count(select(func.count(TaskItem.id)).where(TaskItem.is_completed.is_(True)))

    today = now.date()
    trend_start = today - timedelta(days=6)
    created = db.session.execute(
        select(TaskItem.created_at).where(TaskItem.created_at >= datetime(trend_start.year, trend_start.month, trend_start.day))
    ).scalars()
    per_day: Dict[str, int] = {(trend_start + timedelta(days=i)).isoformat(): 0 for i in range(7)}
    for created_at in created:
        key = created_at.date().isoformat()
        if key in per_day:
            per_day[key] += 1

    return {
        'users': {
            'total': _count(select(func.count(User.id))),
            'active': _count(select(func.count(User.id)).where(User.active.is_(True))),
            'admins': _count(select(func.count(User.id)).where(User.role == ROLE_ADMIN)),
            'dau': active_since(day_ago),
            'wau': active_since(week_ago),
            'mau': active_since(month_ago),
        },
        'tasks': {
            'total': total_tasks,
            'completed': completed_tasks,
            'completion_rate': round(completed_tasks / total_tasks, 4) if total_tasks else 0.0,
            'created_last_7_days': per_day,
        },
        'focus_minutes_this_week': _count(
            select(func.coalesce(func.sum(FocusSession.duration_minutes), 0)).where(FocusSession.start_time >= week_ago)
        ),
        'points_awarded_this_week': _count(
            select(func.coalesce(func.sum(PointTransaction.points), 0)).where(
                PointTransaction.created_at >= week_ago, PointTransaction.points > 0
            )
        ),
        'generated_at': now.isoformat(),
    }
