"""
TaskItem model - the core unit of work in TaskTracker.
SQLAlchemy 2.0 typed model with status lifecycle helpers.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime, date
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, DateTime, Date, Text, Boolean, ForeignKey, Index
from .base import Base, utc_today
from .tag import task_tags

if TYPE_CHECKING:
    from .user import User
    from .category import Category
    from .tag import Tag
    from .focus import FocusSession


class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    TODO = "todo"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


TASK_STATUSES = [s.value for s in TaskStatus]
TASK_PRIORITIES = [p.value for p in TaskPriority]


class TaskItem(Base):
    """
    A task owned by one user, optionally categorised, tagged and assigned.

    ``version`` is bumped on every update so clients can detect stale writes.
    """
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(32), default=TaskStatus.TODO.value, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), default=TaskPriority.MEDIUM.value, nullable=False)

    due_date: Mapped[Optional[date]] = mapped_column(Date)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user: Mapped["User"] = relationship(back_populates="tasks", foreign_keys=[user_id])

    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    category: Mapped[Optional["Category"]] = relationship(back_populates="tasks")

    assigned_to_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    assigned_to: Mapped[Optional["User"]] = relationship(foreign_keys=[assigned_to_id])

    tags: Mapped[list["Tag"]] = relationship(secondary=task_tags, back_populates="tasks", lazy="selectin")
    focus_sessions: Mapped[list["FocusSession"]] = relationship(back_populates="task", cascade="all, delete-orphan")

    estimated_time_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    actual_time_spent_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    progress_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # 0-100

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_tasks_user_status_due', 'user_id', 'status', 'due_date'),
        Index('ix_tasks_category', 'category_id'),
        Index('ix_tasks_assigned_to', 'assigned_to_id'),
    )

    def __repr__(self):
        return f'<TaskItem {self.id}: {self.title}>'

    @property
    def is_overdue(self) -> bool:
        """Due date has passed and the task is still open."""
        if not self.due_date or self.is_completed:
            return False
        return utc_today() > self.due_date

    @property
    def is_due_today(self) -> bool:
        return bool(self.due_date) and not self.is_completed and self.due_date == utc_today()

    @property
    def days_until_due(self) -> Optional[int]:
        if not self.due_date:
            return None
        return (self.due_date - utc_today()).days

    def complete_task(self):
        """Mark task as completed."""
        self.status = TaskStatus.COMPLETED.value
        self.is_completed = True
        self.progress_percentage = 100
        self.completed_at = datetime.utcnow()

    def start_task(self):
        """Move an unstarted task to in progress."""
        if self.status in (TaskStatus.TODO.value, TaskStatus.NOT_STARTED.value, TaskStatus.PENDING.value):
            self.status = TaskStatus.IN_PROGRESS.value

    def set_status(self, status: str):
        """Change status keeping the completion fields consistent."""
        if status == TaskStatus.COMPLETED.value:
            if not self.is_completed:
                self.complete_task()
            return
        self.status = status
        if self.is_completed:
            self.is_completed = False
            self.completed_at = None
            if self.progress_percentage == 100:
                self.progress_percentage = 0

    def update_progress(self, percentage: int):
        """Update task progress percentage."""
        self.progress_percentage = max(0, min(100, percentage))
        if self.progress_percentage == 100:
            self.complete_task()
        elif self.progress_percentage > 0:
            self.start_task()

    def to_dict(self, include_relationships=False):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'is_completed': self.is_completed,
            'user_id': self.user_id,
            'category_id': self.category_id,
            'assigned_to_id': self.assigned_to_id,
            'estimated_time_minutes': self.estimated_time_minutes,
            'actual_time_spent_minutes': self.actual_time_spent_minutes,
            'progress_percentage': self.progress_percentage,
            'version': self.version,
            'tag_ids': sorted(tag.id for tag in self.tags),
            'is_overdue': self.is_overdue,
            'days_until_due': self.days_until_due,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_relationships:
            data['category'] = self.category.to_dict() if self.category else None
            data['tags'] = [tag.to_dict() for tag in sorted(self.tags, key=lambda t: t.name)]
            if self.assigned_to:
                data['assigned_to'] = {
                    'id': self.assigned_to.id,
                    'username': self.assigned_to.username,
                    'full_name': self.assigned_to.full_name,
                }

        return data
