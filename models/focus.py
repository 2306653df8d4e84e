"""
Focus session models - timed work sessions against a task, with distractions.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, DateTime, Text, Boolean, ForeignKey, Index
from .base import Base

if TYPE_CHECKING:
    from .task import TaskItem


class FocusSessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


ACTIVE_SESSION_STATUSES = (FocusSessionStatus.IN_PROGRESS.value, FocusSessionStatus.PAUSED.value)


class FocusSession(Base):
    """
    ``duration_minutes`` accumulates across pauses; ``start_time`` is reset on
    each resume so the running segment is always ``now - start_time``.
    """
    __tablename__ = "focus_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    task: Mapped["TaskItem"] = relationship(back_populates="focus_sessions")

    start_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(String(16), default=FocusSessionStatus.IN_PROGRESS.value, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    session_quality_rating: Mapped[Optional[int]] = mapped_column(Integer)  # 1-5
    completion_notes: Mapped[Optional[str]] = mapped_column(Text)
    task_progress_before: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    task_progress_after: Mapped[Optional[int]] = mapped_column(Integer)
    task_completed_during_session: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    distractions: Mapped[list["Distraction"]] = relationship(
        back_populates="focus_session", cascade="all, delete-orphan", order_by="Distraction.timestamp"
    )

    __table_args__ = (
        Index('ix_focus_sessions_user_status', 'user_id', 'status'),
        Index('ix_focus_sessions_user_start', 'user_id', 'start_time'),
    )

    def __repr__(self):
        return f'<FocusSession {self.id}: task={self.task_id} {self.status}>'

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_SESSION_STATUSES

    def to_dict(self, include_task=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'task_id': self.task_id,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_minutes': self.duration_minutes,
            'status': self.status,
            'is_completed': self.is_completed,
            'notes': self.notes,
            'session_quality_rating': self.session_quality_rating,
            'completion_notes': self.completion_notes,
            'task_progress_before': self.task_progress_before,
            'task_progress_after': self.task_progress_after,
            'task_completed_during_session': self.task_completed_during_session,
            'distraction_count': len(self.distractions),
        }
        if include_task and self.task:
            data['task'] = {
                'id': self.task.id,
                'title': self.task.title,
                'status': self.task.status,
                'progress_percentage': self.task.progress_percentage,
            }
        return data


class Distraction(Base):
    __tablename__ = "distractions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    focus_session_id: Mapped[int] = mapped_column(
        ForeignKey("focus_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    focus_session: Mapped["FocusSession"] = relationship(back_populates="distractions")

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="other", nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'focus_session_id': self.focus_session_id,
            'description': self.description,
            'category': self.category,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
