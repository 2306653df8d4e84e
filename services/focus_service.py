"""
Focus Service
Timed focus sessions on a task: start/switch/pause/resume/end, distraction
logging, and per-user statistics and insights.

A user has at most one active (in progress or paused) session.
"""

import logging
import math
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from sqlalchemy import select, func, case

from models import db, TaskItem, FocusSession, Distraction
from models.focus import FocusSessionStatus, ACTIVE_SESSION_STATUSES
from services.gamification_service import gamification_service
from services.task_service import task_service
from utils.errors import NotFoundError, ConflictError
from utils.validation import require_text, optional_text, optional_int, optional_bool

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
DEFAULT_STATISTICS_DAYS = 7
DEFAULT_INSIGHTS_DAYS = 30
PRIORITY_RANK = {'critical': 0, 'high': 1, 'medium': 2, 'low': 3}


def ceil_minutes(delta: timedelta) -> int:
    """Whole minutes, rounding any partial minute up."""
    seconds = delta.total_seconds()
    return int(math.ceil(seconds / 60)) if seconds > 0 else 0


class FocusService:

    def get_current_session(self, user_id: int) -> Optional[FocusSession]:
        return db.session.execute(
            select(FocusSession)
            .where(FocusSession.user_id == user_id, FocusSession.status.in_(ACTIVE_SESSION_STATUSES))
            .order_by(FocusSession.start_time.desc(), FocusSession.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_session(self, user_id: int, session_id: int) -> FocusSession:
        session = db.session.get(FocusSession, session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError('Focus session not found')
        return session

    def start_session(self, user_id: int, task_id: int, notes: Optional[str] = None,
                      force_start: bool = False) -> FocusSession:
        task = task_service.get_task(user_id, task_id)

        active = self.get_current_session(user_id)
        if active is not None:
            if not force_start:
                raise ConflictError('A focus session is already active',
                                    context={'session_id': active.id, 'task_id': active.task_id})
            self._finish(user_id, active)

        session = FocusSession(
            user_id=user_id,
            task_id=task.id,
            start_time=datetime.utcnow(),
            status=FocusSessionStatus.IN_PROGRESS.value,
            duration_minutes=0,
            notes=optional_text(notes, 'notes', 2000),
            task_progress_before=task.progress_percentage,
        )
        db.session.add(session)
        db.session.commit()
        logger.info(f"🎯 Focus session {session.id} started on task {task.id} for user {user_id}")
        return session

    def switch_task(self, user_id: int, task_id: int, notes: Optional[str] = None) -> FocusSession:
        return self.start_session(user_id, task_id, notes=notes, force_start=True)

    def _accumulate(self, session: FocusSession, now: datetime) -> None:
        if session.status == FocusSessionStatus.IN_PROGRESS.value:
            session.duration_minutes += ceil_minutes(now - session.start_time)

    def _finish(self, user_id: int, session: FocusSession) -> None:
        """Close an active session and credit its time; caller commits."""
        now = datetime.utcnow()
        self._accumulate(session, now)
        session.end_time = now
        session.status = FocusSessionStatus.COMPLETED.value
        session.is_completed = True
        db.session.flush()

        task = session.task
        task.actual_time_spent_minutes = db.session.scalar(
            select(func.coalesce(func.sum(FocusSession.duration_minutes), 0)).where(
                FocusSession.task_id == task.id, FocusSession.is_completed.is_(True)
            )
        )
        gamification_service.on_focus_session_completed(user_id, session)
        logger.info(f"Focus session {session.id} ended after {session.duration_minutes} minutes")

    def end_session(self, user_id: int, session_id: int) -> FocusSession:
        session = self.get_session(user_id, session_id)
        if session.status == FocusSessionStatus.COMPLETED.value:
            raise ConflictError('Focus session already completed')
        self._finish(user_id, session)
        db.session.commit()
        return session

    def end_current_session(self, user_id: int) -> FocusSession:
        session = self.get_current_session(user_id)
        if session is None:
            raise NotFoundError('No active focus session')
        return self.end_session(user_id, session.id)

    def complete_session(self, user_id: int, session_id: int, details: Dict[str, Any]) -> FocusSession:
        """End the session if still running and record the outcome on it and its task."""
        session = self.get_session(user_id, session_id)
        if session.is_active:
            self._finish(user_id, session)

        rating = optional_int(details.get('session_quality_rating'), 'session_quality_rating', minimum=1, maximum=5)
        if rating is not None:
            session.session_quality_rating = rating
        if 'completion_notes' in details:
            session.completion_notes = optional_text(details.get('completion_notes'), 'completion_notes', 2000)

        task = session.task
        was_completed = task.is_completed
        progress_after = optional_int(details.get('task_progress_after'), 'task_progress_after', minimum=0, maximum=100)
        if progress_after is not None:
            task.update_progress(progress_after)
        if optional_bool(details.get('task_completed_during_session'), 'task_completed_during_session'):
            session.task_completed_during_session = True
            if not task.is_completed:
                task.complete_task()
        session.task_progress_after = task.progress_percentage
        if task.is_completed and not was_completed:
            task.version += 1
            gamification_service.on_task_completed(user_id, task)

        db.session.commit()
        return session

    def pause_session(self, user_id: int, session_id: int) -> FocusSession:
        session = self.get_session(user_id, session_id)
        if session.status != FocusSessionStatus.IN_PROGRESS.value:
            raise ConflictError('Only an in-progress session can be paused')
        now = datetime.utcnow()
        self._accumulate(session, now)
        session.start_time = now
        session.status = FocusSessionStatus.PAUSED.value
        db.session.commit()
        return session

    def pause_current_session(self, user_id: int) -> FocusSession:
        session = self.get_current_session(user_id)
        if session is None:
            raise NotFoundError('No active focus session')
        return self.pause_session(user_id, session.id)

    def resume_session(self, user_id: int, session_id: int) -> FocusSession:
        session = self.get_session(user_id, session_id)
        if session.status != FocusSessionStatus.PAUSED.value:
            raise ConflictError('Only a paused session can be resumed')
        session.start_time = datetime.utcnow()
        session.status = FocusSessionStatus.IN_PROGRESS.value
        db.session.commit()
        return session

    # ------------------------------------------------------------ distractions

    def record_distraction(self, user_id: int, session_id: int, description: str,
                           category: Optional[str] = None) -> Distraction:
        session = self.get_session(user_id, session_id)
        distraction = Distraction(
            focus_session_id=session.id,
            description=require_text(description, 'description', 500),
            category=(optional_text(category, 'category', 50) or '').strip().lower() or 'other',
            timestamp=datetime.utcnow(),
        )
        db.session.add(distraction)
        db.session.commit()
        return distraction

    def get_distractions(self, user_id: int, session_id: int) -> List[Distraction]:
        return list(self.get_session(user_id, session_id).distractions)

    # ------------------------------------------------------------- reporting

    def get_history(self, user_id: int, limit: int = HISTORY_LIMIT) -> List[FocusSession]:
        return list(db.session.execute(
            select(FocusSession)
            .where(FocusSession.user_id == user_id)
            .order_by(FocusSession.start_time.desc(), FocusSession.id.desc())
            .limit(limit)
        ).scalars())

    def _sessions_between(self, user_id: int, start: datetime, end: datetime) -> List[FocusSession]:
        return list(db.session.execute(
            select(FocusSession).where(
                FocusSession.user_id == user_id,
                FocusSession.start_time >= start,
                FocusSession.start_time <= end,
            )
        ).scalars())

    def get_statistics(self, user_id: int, start: Optional[datetime] = None,
                       end: Optional[datetime] = None) -> Dict[str, Any]:
        end = end or datetime.utcnow()
        start = start or end - timedelta(days=DEFAULT_STATISTICS_DAYS)
        sessions = self._sessions_between(user_id, start, end)

        total_minutes = sum(s.duration_minutes for s in sessions)
        distractions = [d for s in sessions for d in s.distractions]
        daily_minutes: Dict[str, int] = defaultdict(int)
        for s in sessions:
            daily_minutes[s.start_time.strftime('%Y-%m-%d')] += s.duration_minutes

        return {
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'total_minutes': total_minutes,
            'session_count': len(sessions),
            'distraction_count': len(distractions),
            'average_session_minutes': round(total_minutes / len(sessions), 1) if sessions else 0.0,
            'distractions_by_category': dict(Counter(d.category for d in distractions)),
            'daily_minutes': dict(sorted(daily_minutes.items())),
        }

    def get_insights(self, user_id: int, days: int = DEFAULT_INSIGHTS_DAYS) -> Dict[str, Any]:
        end = datetime.utcnow()
        sessions = self._sessions_between(user_id, end - timedelta(days=days), end)
        completed = [s for s in sessions if s.is_completed]

        minutes_by_hour: Dict[int, int] = defaultdict(int)
        for s in completed:
            minutes_by_hour[s.start_time.hour] += s.duration_minutes
        ratings = [s.session_quality_rating for s in completed if s.session_quality_rating]
        distraction_categories = Counter(d.category for s in sessions for d in s.distractions)

        return {
            'period_days': days,
            'session_count': len(sessions),
            'total_minutes': sum(s.duration_minutes for s in completed),
            'best_hour': max(minutes_by_hour, key=minutes_by_hour.get) if minutes_by_hour else None,
            'average_quality_rating': round(sum(ratings) / len(ratings), 2) if ratings else None,
            'completion_rate': round(len(completed) / len(sessions), 4) if sessions else 0.0,
            'most_common_distraction': distraction_categories.most_common(1)[0][0] if distraction_categories else None,
        }

    def get_suggestions(self, user_id: int, limit: int = 5) -> List[TaskItem]:
        priority_order = case(PRIORITY_RANK, value=TaskItem.priority, else_=len(PRIORITY_RANK))
        return list(db.session.execute(
            select(TaskItem)
            .where(TaskItem.user_id == user_id, TaskItem.is_completed.is_(False))
            .order_by(priority_order, TaskItem.due_date.is_(None), TaskItem.due_date, TaskItem.created_at)
            .limit(limit)
        ).scalars())


focus_service = FocusService()
