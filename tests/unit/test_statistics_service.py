"""
Task Statistics Service Unit Tests
"""

import pytest
from datetime import timedelta

from models import utc_today
from services import category_service
from services.task_service import task_service
from services.task_statistics_service import task_statistics_service, time_of_day


class TestTimeOfDay:

    @pytest.mark.parametrize('hour,bucket', [
        (5, 'morning'), (11, 'morning'), (12, 'afternoon'), (16, 'afternoon'),
        (17, 'evening'), (20, 'evening'), (21, 'night'), (0, 'night'), (4, 'night'),
    ])
    def test_buckets(self, hour, bucket):
        assert time_of_day(hour) == bucket


class TestTaskStatistics:

    def test_empty_user(self, test_user):
        rate = task_statistics_service.get_completion_rate(test_user.id)
        assert rate == {'total_tasks': 0, 'completed_tasks': 0, 'completion_rate': 0.0}
        assert task_statistics_service.get_category_distribution(test_user.id) == []
        assert task_statistics_service.get_completion_time_average(test_user.id)['average_completion_hours'] == 0.0

    def test_distributions(self, test_user):
        work = category_service.create_category(test_user.id, {'name': 'Work'})
        task_service.create_task(test_user.id, {'title': 'A', 'priority': 'high', 'category_id': work.id})
        task_service.create_task(test_user.id, {'title': 'B', 'priority': 'high', 'status': 'completed'})
        task_service.create_task(test_user.id, {'title': 'C', 'priority': 'low'})
        task_service.create_task(test_user.id, {'title': 'D', 'priority': 'medium', 'status': 'in_progress'})

        assert task_statistics_service.get_completion_rate(test_user.id)['completion_rate'] == 0.25

        priorities = {p['priority']: p for p in task_statistics_service.get_priority_distribution(test_user.id)}
        assert priorities['high']['count'] == 2
        assert priorities['high']['percentage'] == 50.0
        assert priorities['high']['label'] == 'Priority High'
        assert priorities['critical']['count'] == 0

        statuses = {s['status']: s['count'] for s in task_statistics_service.get_status_distribution(test_user.id)}
        assert statuses['todo'] == 2
        assert statuses['completed'] == 1
        assert statuses['in_progress'] == 1

        categories = task_statistics_service.get_category_distribution(test_user.id)
        assert categories[0]['category'] == 'Work' and categories[0]['count'] == 1
        assert categories[-1]['category'] == 'Uncategorized' and categories[-1]['count'] == 3

    def test_overdue_statistics(self, test_user):
        task_service.create_task(test_user.id, {
            'title': 'Late', 'priority': 'critical',
            'due_date': (utc_today() - timedelta(days=4)).isoformat(),
        })
        task_service.create_task(test_user.id, {'title': 'Fine'})

        overdue = task_statistics_service.get_overdue_statistics(test_user.id)
        assert overdue['overdue_count'] == 1
        assert overdue['percentage_of_all'] == 50.0
        assert overdue['average_days_overdue'] == 4.0
        assert overdue['by_priority']['critical'] == 1

    def test_productivity_trend_window(self, test_user):
        task_service.create_task(test_user.id, {'title': 'Today', 'status': 'completed'})
        trend = task_statistics_service.get_productivity_trend(test_user.id, days=7)
        assert len(trend) == 7
        assert sum(day['created'] for day in trend) == 1

    def test_most_active_categories(self, test_user):
        busy = category_service.create_category(test_user.id, {'name': 'Busy'})
        quiet = category_service.create_category(test_user.id, {'name': 'Quiet'})
        for title in ('A', 'B'):
            task_service.create_task(test_user.id, {'title': title, 'category_id': busy.id})
        task_service.create_task(test_user.id, {'title': 'C', 'category_id': quiet.id})

        ranked = task_statistics_service.get_most_active_categories(test_user.id)
        assert [entry['category'] for entry in ranked] == ['Busy', 'Quiet']
        assert ranked[0]['task_count'] == 2

    def test_full_report_keys(self, test_user):
        report = task_statistics_service.get_task_statistics(test_user.id)
        assert set(report) >= {
            'completion_rate', 'status_distribution', 'priority_distribution',
            'category_distribution', 'completion_time', 'productivity_trend', 'overdue',
        }
