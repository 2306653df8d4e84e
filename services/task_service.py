"""
Task Service
============
User-scoped task management: CRUD, due-date views, statistics, batch
completion and tagging.

Every lookup is filtered by the owning user, so another user's task is
indistinguishable from a missing one (404). Category and tag ids that
belong to someone else are rejected with 403.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Any, List, Optional

from sqlalchemy import select, func, or_

from models import db, TaskItem, Category, Tag, utc_today
from models.task import TASK_STATUSES, TASK_PRIORITIES, TaskStatus
from services.gamification_service import gamification_service
from services.notification_broadcaster import notification_broadcaster
from utils.errors import NotFoundError, PermissionDeniedError, ConflictError, ValidationError
from utils.validation import (
    require_text, optional_text, require_choice, optional_int, parse_date, int_list,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
TAG_NAME_MAX_LENGTH = 30
RECENT_TASKS_LIMIT = 5


def end_of_week(today: date) -> date:
    """The coming Sunday; on a Sunday this is the following Sunday."""
    days_since_sunday = (today.weekday() + 1) % 7
    return today + timedelta(days=7 - days_since_sunday)


class TaskService:

    # ---------------------------------------------------------------- lookups

    def _base_query(self, user_id: int):
        return select(TaskItem).where(TaskItem.user_id == user_id)

    def _ordered(self, stmt):
        return stmt.order_by(TaskItem.due_date.is_(None), TaskItem.due_date, TaskItem.created_at.desc(), TaskItem.id.desc())

    def _all(self, stmt) -> List[TaskItem]:
        return list(db.session.execute(self._ordered(stmt)).scalars())

    def get_task(self, user_id: int, task_id: int) -> TaskItem:
        task = db.session.get(TaskItem, task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError('Task not found')
        return task

    def get_tasks(self, user_id: int, filters: Optional[Dict[str, Any]] = None) -> List[TaskItem]:
        filters = filters or {}
        stmt = self._base_query(user_id)

        if filters.get('status'):
            stmt = stmt.where(TaskItem.status == require_choice(filters['status'], 'status', TASK_STATUSES))
        if filters.get('priority'):
            stmt = stmt.where(TaskItem.priority == require_choice(filters['priority'], 'priority', TASK_PRIORITIES))
        if filters.get('category_id') is not None:
            stmt = stmt.where(TaskItem.category_id == optional_int(filters['category_id'], 'category_id'))
        if filters.get('search'):
            pattern = f"%{filters['search'].strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(TaskItem.title).like(pattern),
                func.lower(func.coalesce(TaskItem.description, '')).like(pattern),
            ))

        due = filters.get('due')
        if due:
            today = utc_today()
            if due == 'today':
                stmt = stmt.where(TaskItem.due_date == today)
            elif due == 'overdue':
                stmt = stmt.where(TaskItem.due_date < today, TaskItem.is_completed.is_(False))
            elif due == 'this_week':
                stmt = stmt.where(TaskItem.due_date >= today, TaskItem.due_date <= end_of_week(today))
            else:
                raise ValidationError('due must be one of: today, overdue, this_week')

        return self._all(stmt)

    def get_tasks_paged(self, user_id: int, page: int = 1, page_size: int = 10):
        if page < 1 or page_size < 1:
            raise ValidationError('page and page_size must be positive')
        return db.paginate(self._ordered(self._base_query(user_id)), page=page,
                           per_page=min(page_size, 100), error_out=False)

    def get_tasks_by_status(self, user_id: int, status: str) -> List[TaskItem]:
        require_choice(status, 'status', TASK_STATUSES)
        return self._all(self._base_query(user_id).where(TaskItem.status == status))

    def get_tasks_by_category(self, user_id: int, category_id: int) -> List[TaskItem]:
        self._owned_category(user_id, category_id)
        return self._all(self._base_query(user_id).where(TaskItem.category_id == category_id))

    def get_tasks_by_tag(self, user_id: int, tag_id: int) -> List[TaskItem]:
        self._owned_tag(user_id, tag_id)
        return self._all(self._base_query(user_id).where(TaskItem.tags.any(Tag.id == tag_id)))

    def get_tasks_by_due_date_range(self, user_id: int, start: date, end: date) -> List[TaskItem]:
        if start > end:
            raise ValidationError('start_date must be on or before end_date')
        return self._all(self._base_query(user_id).where(TaskItem.due_date >= start, TaskItem.due_date <= end))

    def get_overdue_tasks(self, user_id: int) -> List[TaskItem]:
        return self.get_tasks(user_id, {'due': 'overdue'})

    def get_due_today_tasks(self, user_id: int) -> List[TaskItem]:
        return self.get_tasks(user_id, {'due': 'today'})

    def get_due_this_week_tasks(self, user_id: int) -> List[TaskItem]:
        return self.get_tasks(user_id, {'due': 'this_week'})

    # ------------------------------------------------------------- ownership

    def _owned_category(self, user_id: int, category_id: Optional[int]) -> Optional[Category]:
        if category_id is None:
            return None
        category = db.session.get(Category, category_id)
        if category is None:
            raise NotFoundError('Category not found')
        if category.user_id != user_id:
            raise PermissionDeniedError('Category does not belong to you')
        return category

    def _owned_tag(self, user_id: int, tag_id: int) -> Tag:
        tag = db.session.get(Tag, tag_id)
        if tag is None:
            raise NotFoundError('Tag not found')
        if tag.user_id != user_id:
            raise PermissionDeniedError('Tag does not belong to you')
        return tag

    def _owned_tags(self, user_id: int, tag_ids: List[int]) -> List[Tag]:
        return [self._owned_tag(user_id, tag_id) for tag_id in dict.fromkeys(tag_ids)]

    # ------------------------------------------------------------------ CRUD

    def _apply_fields(self, user_id: int, task: TaskItem, data: Dict[str, Any], creating: bool) -> None:
        if creating or 'title' in data:
            task.title = require_text(data.get('title'), 'title', TITLE_MAX_LENGTH)
        if 'description' in data:
            task.description = optional_text(data.get('description'), 'description', DESCRIPTION_MAX_LENGTH)
        if 'priority' in data:
            task.priority = require_choice(data.get('priority'), 'priority', TASK_PRIORITIES)
        if 'due_date' in data:
            task.due_date = parse_date(data.get('due_date'), 'due_date')
        if 'category_id' in data:
            category_id = optional_int(data.get('category_id'), 'category_id')
            self._owned_category(user_id, category_id)
            task.category_id = category_id
        if 'estimated_time_minutes' in data:
            task.estimated_time_minutes = optional_int(data.get('estimated_time_minutes'),
                                                       'estimated_time_minutes', minimum=0)
        if 'assigned_to_id' in data:
            task.assigned_to_id = optional_int(data.get('assigned_to_id'), 'assigned_to_id')
        if 'tag_ids' in data:
            task.tags = self._owned_tags(user_id, int_list(data.get('tag_ids'), 'tag_ids'))
        if 'status' in data:
            task.set_status(require_choice(data.get('status'), 'status', TASK_STATUSES))
        if 'progress_percentage' in data:
            progress = optional_int(data.get('progress_percentage'), 'progress_percentage', minimum=0, maximum=100)
            if progress is not None:
                task.update_progress(progress)

    def _after_change(self, user_id: int, task: TaskItem, was_completed: bool) -> None:
        """Fire completion side effects once per transition into completed."""
        if task.is_completed and not was_completed:
            gamification_service.on_task_completed(user_id, task)

    def create_task(self, user_id: int, data: Dict[str, Any]) -> TaskItem:
        task = TaskItem(user_id=user_id, status=TaskStatus.TODO.value, priority='medium',
                        progress_percentage=0, version=1, is_completed=False)
        self._apply_fields(user_id, task, data, creating=True)
        db.session.add(task)
        db.session.flush()

        gamification_service.on_task_created(user_id, task)
        self._after_change(user_id, task, was_completed=False)
        db.session.commit()

        logger.info(f"Task created: {task.id} '{task.title}' for user {user_id}")
        notification_broadcaster.broadcast_task_event(user_id, task.id, 'task_created', task.to_dict())
        return task

    def update_task(self, user_id: int, task_id: int, data: Dict[str, Any]) -> TaskItem:
        task = self.get_task(user_id, task_id)
        expected_version = data.get('version')
        if expected_version is not None and optional_int(expected_version, 'version') != task.version:
            raise ConflictError('Task was modified by another request', context={'current_version': task.version})

        was_completed = task.is_completed
        self._apply_fields(user_id, task, data, creating=False)
        task.version += 1
        self._after_change(user_id, task, was_completed)
        db.session.commit()

        event = 'task_completed' if task.is_completed and not was_completed else 'task_updated'
        notification_broadcaster.broadcast_task_event(user_id, task.id, event, task.to_dict())
        return task

    def delete_task(self, user_id: int, task_id: int) -> None:
        task = self.get_task(user_id, task_id)
        db.session.delete(task)
        db.session.commit()
        logger.info(f"Task deleted: {task_id} for user {user_id}")
        notification_broadcaster.broadcast_task_event(user_id, task_id, 'task_deleted')

    def update_task_status(self, user_id: int, task_id: int, status: str) -> TaskItem:
        return self.update_task(user_id, task_id, {'status': status})

    def complete_tasks(self, user_id: int, task_ids: List[int]) -> List[int]:
        """Complete the caller's tasks; foreign, missing and already completed ids are skipped."""
        completed = []
        for task_id in dict.fromkeys(task_ids):
            task = db.session.get(TaskItem, task_id)
            if task is None or task.user_id != user_id or task.is_completed:
                continue
            task.complete_task()
            task.version += 1
            self._after_change(user_id, task, was_completed=False)
            completed.append(task.id)
        db.session.commit()

        for task_id in completed:
            notification_broadcaster.broadcast_task_event(user_id, task_id, 'task_completed')
        logger.info(f"Batch completed {len(completed)} tasks for user {user_id}")
        return completed

    # ------------------------------------------------------------ statistics

    def get_task_statistics(self, user_id: int) -> Dict[str, Any]:
        tasks = list(db.session.execute(self._base_query(user_id)).scalars())
        today = utc_today()
        week_end = end_of_week(today)
        next_week_end = week_end + timedelta(days=7)

        by_category: Dict[str, int] = {}
        by_tag: Dict[str, int] = {}
        for task in tasks:
            if task.category is not None:
                by_category[task.category.name] = by_category.get(task.category.name, 0) + 1
            for tag in task.tags:
                by_tag[tag.name] = by_tag.get(tag.name, 0) + 1

        def _due_between(task, start_exclusive, end_inclusive):
            return task.due_date is not None and start_exclusive < task.due_date <= end_inclusive

        recently_modified = sorted(tasks, key=lambda t: (t.updated_at, t.id), reverse=True)[:RECENT_TASKS_LIMIT]
        recently_completed = sorted(
            (t for t in tasks if t.is_completed),
            key=lambda t: (t.completed_at or t.updated_at, t.id),
            reverse=True,
        )[:RECENT_TASKS_LIMIT]

        return {
            'total_tasks': len(tasks),
            'completed_tasks': sum(1 for t in tasks if t.is_completed),
            'in_progress_tasks': sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS.value),
            'other_status_tasks': sum(
                1 for t in tasks if t.status not in (TaskStatus.COMPLETED.value, TaskStatus.IN_PROGRESS.value)
            ),
            'overdue_tasks': sum(1 for t in tasks if t.is_overdue),
            'due_today': sum(1 for t in tasks if t.due_date == today),
            'due_this_week': sum(1 for t in tasks if _due_between(t, today, week_end)),
            'due_next_week': sum(1 for t in tasks if _due_between(t, week_end, next_week_end)),
            'tasks_by_category': by_category,
            'tasks_by_tag': by_tag,
            'recently_modified': [t.to_dict() for t in recently_modified],
            'recently_completed': [t.to_dict() for t in recently_completed],
        }

    # ------------------------------------------------------------------ tags

    def get_tags(self, user_id: int) -> List[Tag]:
        return list(db.session.execute(
            select(Tag).where(Tag.user_id == user_id).order_by(Tag.name)
        ).scalars())

    def _ensure_unique_tag(self, user_id: int, name: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(Tag.id).where(Tag.user_id == user_id, func.lower(Tag.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Tag.id != exclude_id)
        if db.session.execute(stmt).first():
            raise ConflictError(f"Tag '{name}' already exists")

    def create_tag(self, user_id: int, name: str) -> Tag:
        name = require_text(name, 'name', TAG_NAME_MAX_LENGTH)
        self._ensure_unique_tag(user_id, name)
        tag = Tag(user_id=user_id, name=name)
        db.session.add(tag)
        db.session.commit()
        return tag

    def update_tag(self, user_id: int, tag_id: int, name: str) -> Tag:
        tag = self._tag_or_404(user_id, tag_id)
        name = require_text(name, 'name', TAG_NAME_MAX_LENGTH)
        self._ensure_unique_tag(user_id, name, exclude_id=tag.id)
        tag.name = name
        db.session.commit()
        return tag

    def delete_tag(self, user_id: int, tag_id: int) -> None:
        tag = self._tag_or_404(user_id, tag_id)
        db.session.delete(tag)
        db.session.commit()

    def _tag_or_404(self, user_id: int, tag_id: int) -> Tag:
        tag = db.session.get(Tag, tag_id)
        if tag is None or tag.user_id != user_id:
            raise NotFoundError('Tag not found')
        return tag

    def get_task_tags(self, user_id: int, task_id: int) -> List[Tag]:
        return sorted(self.get_task(user_id, task_id).tags, key=lambda t: t.name)

    def add_tag_to_task(self, user_id: int, task_id: int, tag_id: int) -> TaskItem:
        task = self.get_task(user_id, task_id)
        tag = self._owned_tag(user_id, tag_id)
        if tag not in task.tags:
            task.tags.append(tag)
            task.version += 1
        db.session.commit()
        return task

    def remove_tag_from_task(self, user_id: int, task_id: int, tag_id: int) -> TaskItem:
        task = self.get_task(user_id, task_id)
        tag = self._owned_tag(user_id, tag_id)
        if tag in task.tags:
            task.tags.remove(tag)
            task.version += 1
        db.session.commit()
        return task

    def update_task_tags(self, user_id: int, task_id: int, tag_ids: List[int]) -> TaskItem:
        task = self.get_task(user_id, task_id)
        task.tags = self._owned_tags(user_id, tag_ids)
        task.version += 1
        db.session.commit()
        return task


task_service = TaskService()
