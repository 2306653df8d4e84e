"""
Task Service Unit Tests

Covers:
- TaskItem state rules (completion, progress, status changes)
- TaskService CRUD, optimistic concurrency and ownership checks
- Due-date views and the end-of-week boundary
- Batch completion and tagging
"""

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import text

from models import PointTransaction, TaskItem, utc_today
from services import category_service
from services.task_service import task_service, end_of_week
from utils.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError


class TestTaskItemModel:
    """State transitions on the model itself."""

    def test_update_progress_clamps_and_completes(self):
        task = TaskItem(title='x', status='todo', progress_percentage=0, is_completed=False)
        task.update_progress(150)
        assert task.progress_percentage == 100
        assert task.is_completed is True
        assert task.status == 'completed'
        assert task.completed_at is not None

    def test_partial_progress_starts_task(self):
        task = TaskItem(title='x', status='not_started', progress_percentage=0, is_completed=False)
        task.update_progress(40)
        assert task.status == 'in_progress'
        assert task.is_completed is False

    def test_reopen_clears_completion_fields(self):
        task = TaskItem(title='x', status='todo', progress_percentage=0, is_completed=False)
        task.complete_task()
        task.set_status('in_progress')
        assert task.is_completed is False
        assert task.completed_at is None
        assert task.progress_percentage == 0

    def test_overdue_only_for_open_tasks(self):
        task = TaskItem(title='x', status='todo', is_completed=False,
                        due_date=utc_today() - timedelta(days=1))
        assert task.is_overdue is True
        task.complete_task()
        assert task.is_overdue is False


class TestEndOfWeek:

    def test_midweek_runs_to_sunday(self):
        wednesday = date(2025, 1, 15)
        assert end_of_week(wednesday) == date(2025, 1, 19)

    def test_sunday_rolls_to_next_sunday(self):
        sunday = date(2025, 1, 19)
        assert end_of_week(sunday) == date(2025, 1, 26)

    def test_saturday(self):
        assert end_of_week(date(2025, 1, 18)) == date(2025, 1, 19)


class TestTaskCrud:

    def test_create_task_defaults(self, test_user):
        task = task_service.create_task(test_user.id, {'title': '  Write report  '})
        assert task.id is not None
        assert task.title == 'Write report'
        assert task.status == 'todo'
        assert task.priority == 'medium'
        assert task.version == 1
        assert task.progress_percentage == 0

    def test_create_task_requires_title(self, test_user):
        with pytest.raises(ValidationError):
            task_service.create_task(test_user.id, {'title': '   '})

    def test_title_length_limit(self, test_user):
        with pytest.raises(ValidationError):
            task_service.create_task(test_user.id, {'title': 'x' * 101})

    def test_invalid_priority_rejected(self, test_user):
        with pytest.raises(ValidationError):
            task_service.create_task(test_user.id, {'title': 'Task', 'priority': 'urgent'})

    def test_update_bumps_version(self, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Task'})
        updated = task_service.update_task(test_user.id, task.id, {'title': 'Renamed', 'version': 1})
        assert updated.title == 'Renamed'
        assert updated.version == 2

    def test_stale_version_conflicts(self, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Task'})
        task_service.update_task(test_user.id, task.id, {'title': 'First'})
        with pytest.raises(ConflictError):
            task_service.update_task(test_user.id, task.id, {'title': 'Second', 'version': 1})

    def test_foreign_task_is_not_found(self, test_user, other_user):
        task = task_service.create_task(other_user.id, {'title': 'Private'})
        with pytest.raises(NotFoundError):
            task_service.get_task(test_user.id, task.id)
        with pytest.raises(NotFoundError):
            task_service.delete_task(test_user.id, task.id)

    def test_foreign_category_is_forbidden(self, test_user, other_user):
        category = category_service.create_category(other_user.id, {'name': 'Theirs'})
        with pytest.raises(PermissionDeniedError):
            task_service.create_task(test_user.id, {'title': 'Task', 'category_id': category.id})

    def test_missing_category_is_not_found(self, test_user):
        with pytest.raises(NotFoundError):
            task_service.create_task(test_user.id, {'title': 'Task', 'category_id': 999999})

    def test_delete_task(self, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Temp'})
        task_service.delete_task(test_user.id, task.id)
        with pytest.raises(NotFoundError):
            task_service.get_task(test_user.id, task.id)

    def test_delete_keeps_point_history(self, db_session, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Done and gone', 'status': 'completed'})
        task_service.delete_task(test_user.id, task.id)

        history = db_session.query(PointTransaction).filter_by(
            user_id=test_user.id, transaction_type='task_completion').one()
        assert history.task_id is None

    def test_sqlite_enforces_foreign_keys(self, db_session):
        assert db_session.execute(text('PRAGMA foreign_keys')).scalar() == 1


class TestCompletion:

    def _completion_points(self, db_session, user_id):
        return [
            t.points for t in db_session.query(PointTransaction).filter_by(
                user_id=user_id, transaction_type='task_completion')
        ]

    def test_completing_awards_points_once(self, db_session, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Ship it', 'priority': 'high'})
        task_service.update_task_status(test_user.id, task.id, 'completed')
        task_service.update_task_status(test_user.id, task.id, 'completed')
        assert self._completion_points(db_session, test_user.id) == [15]

    def test_reopened_task_earns_points_when_completed_again(self, db_session, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Round two', 'priority': 'high'})
        task_service.update_task_status(test_user.id, task.id, 'completed')
        task_service.update_task_status(test_user.id, task.id, 'todo')
        assert task.is_completed is False
        assert task.completed_at is None

        task_service.update_task_status(test_user.id, task.id, 'completed')
        assert self._completion_points(db_session, test_user.id) == [15, 15]

    def test_progress_100_completes(self, test_user):
        task = task_service.create_task(test_user.id, {'title': 'Progress'})
        task = task_service.update_task(test_user.id, task.id, {'progress_percentage': 100})
        assert task.is_completed is True
        assert task.status == 'completed'

    def test_batch_completion_skips_foreign_and_done(self, db_session, test_user, other_user):
        mine = task_service.create_task(test_user.id, {'title': 'Mine'})
        done = task_service.create_task(test_user.id, {'title': 'Done', 'status': 'completed'})
        theirs = task_service.create_task(other_user.id, {'title': 'Theirs'})

        completed = task_service.complete_tasks(test_user.id, [mine.id, done.id, theirs.id, 999999])

        assert completed == [mine.id]
        db_session.refresh(theirs)
        assert theirs.is_completed is False


class TestDueDateViews:

    def test_overdue_today_and_week(self, test_user):
        today = utc_today()
        overdue = task_service.create_task(test_user.id, {'title': 'Late', 'due_date': (today - timedelta(days=2)).isoformat()})
        due_today = task_service.create_task(test_user.id, {'title': 'Today', 'due_date': today.isoformat()})
        task_service.create_task(test_user.id, {'title': 'Later', 'due_date': (today + timedelta(days=30)).isoformat()})
        task_service.create_task(test_user.id, {
            'title': 'Late but done', 'status': 'completed',
            'due_date': (today - timedelta(days=1)).isoformat(),
        })

        assert [t.id for t in task_service.get_overdue_tasks(test_user.id)] == [overdue.id]
        assert [t.id for t in task_service.get_due_today_tasks(test_user.id)] == [due_today.id]
        assert due_today.id in [t.id for t in task_service.get_due_this_week_tasks(test_user.id)]

    def test_views_follow_the_utc_calendar_day(self, mocker, test_user):
        clock = mocker.patch('models.base.datetime')
        clock.utcnow.return_value = datetime(2030, 3, 10, 23, 30)
        task = task_service.create_task(test_user.id, {'title': 'Late night', 'due_date': '2030-03-10'})

        assert task.is_due_today is True
        assert [t.id for t in task_service.get_due_today_tasks(test_user.id)] == [task.id]
        assert task_service.get_overdue_tasks(test_user.id) == []

        clock.utcnow.return_value = datetime(2030, 3, 11, 0, 30)
        assert task.is_overdue is True
        assert [t.id for t in task_service.get_overdue_tasks(test_user.id)] == [task.id]

    def test_range_rejects_inverted_dates(self, test_user):
        with pytest.raises(ValidationError):
            task_service.get_tasks_by_due_date_range(test_user.id, date(2025, 2, 1), date(2025, 1, 1))

    def test_search_filter(self, test_user):
        task_service.create_task(test_user.id, {'title': 'Buy milk', 'description': 'semi skimmed'})
        task_service.create_task(test_user.id, {'title': 'Call bank'})
        results = task_service.get_tasks(test_user.id, {'search': 'SKIMMED'})
        assert [t.title for t in results] == ['Buy milk']

    def test_unknown_due_filter(self, test_user):
        with pytest.raises(ValidationError):
            task_service.get_tasks(test_user.id, {'due': 'someday'})


class TestTags:

    def test_tag_lifecycle(self, test_user):
        tag = task_service.create_tag(test_user.id, 'urgent')
        task = task_service.create_task(test_user.id, {'title': 'Tagged', 'tag_ids': [tag.id]})
        assert [t.name for t in task.tags] == ['urgent']
        assert [t.id for t in task_service.get_tasks_by_tag(test_user.id, tag.id)] == [task.id]

        task_service.remove_tag_from_task(test_user.id, task.id, tag.id)
        assert task_service.get_task_tags(test_user.id, task.id) == []

    def test_duplicate_tag_name_conflicts(self, test_user):
        task_service.create_tag(test_user.id, 'home')
        with pytest.raises(ConflictError):
            task_service.create_tag(test_user.id, 'HOME')

    def test_cannot_attach_foreign_tag(self, test_user, other_user):
        tag = task_service.create_tag(other_user.id, 'secret')
        task = task_service.create_task(test_user.id, {'title': 'Mine'})
        with pytest.raises(PermissionDeniedError):
            task_service.add_tag_to_task(test_user.id, task.id, tag.id)


class TestTaskStatistics:

    def test_counts(self, test_user):
        task_service.create_task(test_user.id, {'title': 'Open'})
        task_service.create_task(test_user.id, {'title': 'Working', 'status': 'in_progress'})
        task_service.create_task(test_user.id, {'title': 'Done', 'status': 'completed'})

        stats = task_service.get_task_statistics(test_user.id)
        assert stats['total_tasks'] == 3
        assert stats['completed_tasks'] == 1
        assert stats['in_progress_tasks'] == 1
        assert stats['other_status_tasks'] == 1
        assert len(stats['recently_completed']) == 1
