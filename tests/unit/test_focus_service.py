"""
Focus Service Unit Tests

Session lifecycle (start/switch/pause/resume/end/complete), time
accounting, distractions and reporting.
"""

import pytest
from datetime import datetime, timedelta

from models import Distraction, PointTransaction
from services.focus_service import focus_service, ceil_minutes
from services.task_service import task_service
from utils.errors import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def task(test_user):
    return task_service.create_task(test_user.id, {'title': 'Deep work', 'priority': 'high'})


def _rewind(db_session, session, minutes):
    """Pretend the running segment started ``minutes`` ago."""
    session.start_time = datetime.utcnow() - timedelta(minutes=minutes)
    db_session.commit()


class TestCeilMinutes:

    def test_partial_minutes_round_up(self):
        assert ceil_minutes(timedelta(seconds=1)) == 1
        assert ceil_minutes(timedelta(minutes=2)) == 2
        assert ceil_minutes(timedelta(minutes=2, seconds=1)) == 3

    def test_non_positive(self):
        assert ceil_minutes(timedelta(0)) == 0
        assert ceil_minutes(timedelta(seconds=-30)) == 0


class TestSessionLifecycle:

    def test_start_records_task_progress(self, test_user, task):
        task_service.update_task(test_user.id, task.id, {'progress_percentage': 30})
        session = focus_service.start_session(test_user.id, task.id)
        assert session.status == 'in_progress'
        assert session.task_progress_before == 30
        assert focus_service.get_current_session(test_user.id).id == session.id

    def test_only_one_active_session(self, test_user, task):
        focus_service.start_session(test_user.id, task.id)
        with pytest.raises(ConflictError):
            focus_service.start_session(test_user.id, task.id)

    def test_force_start_ends_previous(self, test_user, task):
        first = focus_service.start_session(test_user.id, task.id)
        other = task_service.create_task(test_user.id, {'title': 'Other'})
        second = focus_service.switch_task(test_user.id, other.id)

        assert first.status == 'completed'
        assert first.end_time is not None
        assert focus_service.get_current_session(test_user.id).id == second.id

    def test_end_credits_time_and_points(self, db_session, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        _rewind(db_session, session, 25)

        ended = focus_service.end_session(test_user.id, session.id)

        assert ended.is_completed is True
        assert 25 <= ended.duration_minutes <= 26
        assert task.actual_time_spent_minutes == ended.duration_minutes
        focus_points = db_session.query(PointTransaction).filter_by(
            user_id=test_user.id, transaction_type='focus_session').one()
        assert focus_points.points == ended.duration_minutes // 5

    def test_end_twice_conflicts(self, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        focus_service.end_session(test_user.id, session.id)
        with pytest.raises(ConflictError):
            focus_service.end_session(test_user.id, session.id)

    def test_end_current_without_session(self, test_user):
        with pytest.raises(NotFoundError):
            focus_service.end_current_session(test_user.id)

    def test_pause_and_resume_accumulate(self, db_session, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        _rewind(db_session, session, 10)

        focus_service.pause_session(test_user.id, session.id)
        assert session.status == 'paused'
        assert 10 <= session.duration_minutes <= 11
        paused_minutes = session.duration_minutes

        with pytest.raises(ConflictError):
            focus_service.pause_session(test_user.id, session.id)

        focus_service.resume_session(test_user.id, session.id)
        assert session.status == 'in_progress'
        with pytest.raises(ConflictError):
            focus_service.resume_session(test_user.id, session.id)

        focus_service.end_session(test_user.id, session.id)
        assert session.duration_minutes >= paused_minutes

    def test_complete_session_can_finish_task(self, db_session, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        completed = focus_service.complete_session(test_user.id, session.id, {
            'session_quality_rating': 4,
            'completion_notes': 'Good run',
            'task_completed_during_session': True,
        })

        assert completed.session_quality_rating == 4
        assert completed.task_completed_during_session is True
        assert completed.task_progress_after == 100
        assert task.is_completed is True
        completion = db_session.query(PointTransaction).filter_by(
            user_id=test_user.id, transaction_type='task_completion').one()
        assert completion.points == 15

    def test_foreign_session_not_found(self, test_user, other_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        with pytest.raises(NotFoundError):
            focus_service.get_session(other_user.id, session.id)

    def test_cannot_focus_on_foreign_task(self, other_user, task):
        with pytest.raises(NotFoundError):
            focus_service.start_session(other_user.id, task.id)

    def test_deleting_task_removes_its_sessions(self, db_session, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        focus_service.record_distraction(test_user.id, session.id, 'Phone buzzed')
        session_id = session.id

        task_service.delete_task(test_user.id, task.id)

        assert focus_service.get_current_session(test_user.id) is None
        with pytest.raises(NotFoundError):
            focus_service.get_session(test_user.id, session_id)
        with pytest.raises(NotFoundError):
            focus_service.end_current_session(test_user.id)
        assert db_session.query(Distraction).filter_by(focus_session_id=session_id).count() == 0

        other = task_service.create_task(test_user.id, {'title': 'Next up'})
        assert focus_service.start_session(test_user.id, other.id).task_id == other.id

    def test_completion_flag_must_be_boolean(self, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        with pytest.raises(ValidationError):
            focus_service.complete_session(test_user.id, session.id, {'task_completed_during_session': 'false'})


class TestDistractionsAndReports:

    def test_distractions_feed_statistics(self, db_session, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        focus_service.record_distraction(test_user.id, session.id, 'Phone buzzed', 'Phone')
        focus_service.record_distraction(test_user.id, session.id, 'Slack ping', 'phone')
        focus_service.record_distraction(test_user.id, session.id, 'Doorbell')
        _rewind(db_session, session, 15)
        focus_service.end_session(test_user.id, session.id)

        assert len(focus_service.get_distractions(test_user.id, session.id)) == 3

        stats = focus_service.get_statistics(test_user.id)
        assert stats['session_count'] == 1
        assert stats['distraction_count'] == 3
        assert stats['distractions_by_category'] == {'phone': 2, 'other': 1}

        insights = focus_service.get_insights(test_user.id)
        assert insights['most_common_distraction'] == 'phone'
        assert insights['completion_rate'] == 1.0

    def test_distraction_category_must_be_text(self, test_user, task):
        session = focus_service.start_session(test_user.id, task.id)
        with pytest.raises(ValidationError):
            focus_service.record_distraction(test_user.id, session.id, 'Phone buzzed', 5)

    def test_history_is_newest_first(self, test_user, task):
        first = focus_service.start_session(test_user.id, task.id)
        second = focus_service.switch_task(test_user.id, task.id)
        assert [s.id for s in focus_service.get_history(test_user.id)][:2] == [second.id, first.id]

    def test_suggestions_order_by_priority(self, test_user, task):
        low = task_service.create_task(test_user.id, {'title': 'Low', 'priority': 'low'})
        critical = task_service.create_task(test_user.id, {'title': 'Critical', 'priority': 'critical'})
        suggestions = [t.id for t in focus_service.get_suggestions(test_user.id)]
        assert suggestions == [critical.id, task.id, low.id]
