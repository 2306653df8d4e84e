"""
Task Statistics API Integration Tests
"""
from datetime import timedelta

from models import utc_today


def _seed(client):
    category = client.post('/api/v1/categories', json={'name': 'Home'}).get_json()['category']
    yesterday = (utc_today() - timedelta(days=1)).isoformat()
    client.post('/api/v1/tasks', json={'title': 'Dishes', 'category_id': category['id'], 'status': 'completed'})
    client.post('/api/v1/tasks', json={'title': 'Laundry', 'category_id': category['id'], 'priority': 'high',
                                       'due_date': yesterday})
    client.post('/api/v1/tasks', json={'title': 'Loose end'})
    return category


class TestTaskStatisticsApi:

    def test_full_report(self, authenticated_client):
        _seed(authenticated_client)
        stats = authenticated_client.get('/api/v1/task-statistics').get_json()['statistics']

        assert stats['completion_rate']['total_tasks'] == 3
        assert stats['completion_rate']['completed_tasks'] == 1
        assert len(stats['priority_distribution']) == 4
        assert [c['category'] for c in stats['category_distribution']] == ['Home', 'Uncategorized']
        assert stats['overdue']['overdue_count'] == 1
        assert stats['overdue']['by_priority']['high'] == 1
        assert len(stats['productivity_trend']) == 30

    def test_status_distribution_lists_every_status(self, authenticated_client):
        _seed(authenticated_client)
        data = authenticated_client.get('/api/v1/task-statistics/status-distribution').get_json()['data']
        by_status = {row['status']: row['count'] for row in data}
        assert by_status['completed'] == 1
        assert by_status['todo'] == 2
        assert sum(by_status.values()) == 3

    def test_active_categories(self, authenticated_client):
        category = _seed(authenticated_client)
        data = authenticated_client.get('/api/v1/task-statistics/active-categories?limit=3').get_json()['data']
        assert data[0]['category_id'] == category['id']
        assert data[0]['task_count'] == 2
        assert data[0]['completed_count'] == 1

    def test_productivity_window(self, authenticated_client):
        _seed(authenticated_client)
        trend = authenticated_client.get('/api/v1/task-statistics/productivity?days=7').get_json()['data']
        assert len(trend) == 7
        assert sum(day['created'] for day in trend) == 3

    def test_time_of_day_buckets(self, authenticated_client):
        _seed(authenticated_client)
        data = authenticated_client.get('/api/v1/task-statistics/productivity/time-of-day').get_json()['data']
        assert set(data) == {'morning', 'afternoon', 'evening', 'night'}
        assert sum(data.values()) == 1

    def test_empty_account(self, authenticated_client):
        rate = authenticated_client.get('/api/v1/task-statistics/completion-rate').get_json()['data']
        assert rate == {'total_tasks': 0, 'completed_tasks': 0, 'completion_rate': 0.0}
        completion = authenticated_client.get('/api/v1/task-statistics/completion-time').get_json()['data']
        assert completion['average_completion_hours'] == 0.0
