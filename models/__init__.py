"""
TaskTracker models.

All models share one declarative base so that Flask-SQLAlchemy's ``db``
manages a single metadata (``db.create_all()`` creates every table).
"""

import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .base import Base, utc_today

db = SQLAlchemy(model_class=Base)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


from .user import User  # noqa: E402
from .category import Category  # noqa: E402
from .tag import Tag, task_tags  # noqa: E402
from .task import TaskItem, TaskStatus, TaskPriority  # noqa: E402
from .focus import FocusSession, Distraction, FocusSessionStatus  # noqa: E402
from .gamification import (  # noqa: E402
    UserProgress,
    PointTransaction,
    Achievement,
    UserAchievement,
    Badge,
    UserBadge,
    Reward,
    UserReward,
    Challenge,
    ChallengeProgress,
)
from .notification import Notification  # noqa: E402

__all__ = [
    'db',
    'Base',
    'utc_today',
    'User',
    'Category',
    'Tag',
    'task_tags',
    'TaskItem',
    'TaskStatus',
    'TaskPriority',
    'FocusSession',
    'Distraction',
    'FocusSessionStatus',
    'UserProgress',
    'PointTransaction',
    'Achievement',
    'UserAchievement',
    'Badge',
    'UserBadge',
    'Reward',
    'UserReward',
    'Challenge',
    'ChallengeProgress',
    'Notification',
]
