"""
Task Statistics Service
Completion, distribution, timing and productivity reports for one user's tasks.

Each report loads the user's tasks once and groups them in memory.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Any, List

from sqlalchemy import select

from models import db, TaskItem, Category, utc_today
from models.task import TASK_STATUSES, TASK_PRIORITIES

logger = logging.getLogger(__name__)

UNCATEGORIZED = 'Uncategorized'
TIME_OF_DAY_BUCKETS = ('morning', 'afternoon', 'evening', 'night')


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def time_of_day(hour: int) -> str:
    if 5 <= hour <= 11:
        return 'morning'
    if 12 <= hour <= 16:
        return 'afternoon'
    if 17 <= hour <= 20:
        return 'evening'
    return 'night'


class TaskStatisticsService:

    def _tasks(self, user_id: int) -> List[TaskItem]:
        return list(db.session.execute(
            select(TaskItem).where(TaskItem.user_id == user_id)
        ).scalars())

    def get_completion_rate(self, user_id: int) -> Dict[str, Any]:
        tasks = self._tasks(user_id)
        completed = sum(1 for t in tasks if t.is_completed)
        return {
            'total_tasks': len(tasks),
            'completed_tasks': completed,
            'completion_rate': round(completed / len(tasks), 4) if tasks else 0.0,
        }

    def get_status_distribution(self, user_id: int) -> List[Dict[str, Any]]:
        tasks = self._tasks(user_id)
        counts = Counter(t.status for t in tasks)
        return [
            {'status': status, 'count': counts.get(status, 0), 'percentage': _percentage(counts.get(status, 0), len(tasks))}
            for status in TASK_STATUSES
        ]

    def get_priority_distribution(self, user_id: int) -> List[Dict[str, Any]]:
        tasks = self._tasks(user_id)
        counts = Counter(t.priority for t in tasks)
        return [
            {
                'priority': priority,
                'label': f'Priority {priority.capitalize()}',
                'count': counts.get(priority, 0),
                'percentage': _percentage(counts.get(priority, 0), len(tasks)),
            }
            for priority in TASK_PRIORITIES
        ]

    def get_category_distribution(self, user_id: int) -> List[Dict[str, Any]]:
        tasks = self._tasks(user_id)
        categories = db.session.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.name)
        ).scalars()
        counts = Counter(t.category_id for t in tasks)

        distribution = [
            {
                'category_id': category.id,
                'category': category.name,
                'count': counts.get(category.id, 0),
                'percentage': _percentage(counts.get(category.id, 0), len(tasks)),
            }
            for category in categories
        ]
        uncategorized = counts.get(None, 0)
        if uncategorized > 0:
            distribution.append({
                'category_id': None,
                'category': UNCATEGORIZED,
                'count': uncategorized,
                'percentage': _percentage(uncategorized, len(tasks)),
            })
        return distribution

    def get_completion_time_average(self, user_id: int) -> Dict[str, Any]:
        """Mean hours from creation to completion across completed tasks."""
        durations = []
        for task in self._tasks(user_id):
            if not task.is_completed or not task.created_at:
                continue
            finished = task.completed_at or task.updated_at
            if finished:
                durations.append((finished - task.created_at).total_seconds() / 3600)
        return {
            'completed_tasks': len(durations),
            'average_completion_hours': round(sum(durations) / len(durations), 2) if durations else 0.0,
        }

    def get_productivity_trend(self, user_id: int, days: int = 30) -> List[Dict[str, Any]]:
        days = max(1, min(days, 365))
        today = utc_today()
        start = today - timedelta(days=days - 1)
        tasks = self._tasks(user_id)

        created = Counter(t.created_at.date() for t in tasks if t.created_at and t.created_at.date() >= start)
        completed = Counter(t.completed_at.date() for t in tasks if t.completed_at and t.completed_at.date() >= start)

        return [
            {
                'date': (start + timedelta(days=offset)).isoformat(),
                'created': created.get(start + timedelta(days=offset), 0),
                'completed': completed.get(start + timedelta(days=offset), 0),
            }
            for offset in range(days)
        ]

    def get_productivity_by_time_of_day(self, user_id: int) -> Dict[str, int]:
        counts = Counter(time_of_day(t.completed_at.hour) for t in self._tasks(user_id) if t.completed_at)
        return {bucket: counts.get(bucket, 0) for bucket in TIME_OF_DAY_BUCKETS}

    def get_overdue_statistics(self, user_id: int) -> Dict[str, Any]:
        tasks = self._tasks(user_id)
        overdue = [t for t in tasks if t.is_overdue]
        today = utc_today()
        days_overdue = [(today - t.due_date).days for t in overdue]
        by_priority = Counter(t.priority for t in overdue)
        return {
            'overdue_count': len(overdue),
            'percentage_of_all': _percentage(len(overdue), len(tasks)),
            'average_days_overdue': round(sum(days_overdue) / len(days_overdue), 1) if days_overdue else 0.0,
            'by_priority': {priority: by_priority.get(priority, 0) for priority in TASK_PRIORITIES},
        }

    def get_most_active_categories(self, user_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        activity: Dict[int, Dict[str, Any]] = {}
        for task in self._tasks(user_id):
            if task.category is None:
                continue
            entry = activity.setdefault(task.category_id, {
                'category_id': task.category_id,
                'category': task.category.name,
                'task_count': 0,
                'completed_count': 0,
                'last_activity': datetime.min,
            })
            entry['task_count'] += 1
            entry['completed_count'] += 1 if task.is_completed else 0
            entry['last_activity'] = max(entry['last_activity'], task.updated_at or task.created_at or datetime.min)

        ranked = sorted(activity.values(), key=lambda e: (e['task_count'], e['last_activity']), reverse=True)
        for entry in ranked:
            entry['last_activity'] = entry['last_activity'].isoformat()
        return ranked[:max(1, limit)]

    def get_task_statistics(self, user_id: int) -> Dict[str, Any]:
        return {
            'completion_rate': self.get_completion_rate(user_id),
            'status_distribution': self.get_status_distribution(user_id),
            'priority_distribution': self.get_priority_distribution(user_id),
            'category_distribution': self.get_category_distribution(user_id),
            'completion_time': self.get_completion_time_average(user_id),
            'productivity_trend': self.get_productivity_trend(user_id),
            'overdue': self.get_overdue_statistics(user_id),
            'generated_at': datetime.utcnow().isoformat(),
        }


task_statistics_service = TaskStatisticsService()
