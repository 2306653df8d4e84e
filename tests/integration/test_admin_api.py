"""
Admin API Integration Tests
"""

import uuid


class TestAdminAccess:

    def test_regular_user_forbidden(self, authenticated_client):
        response = authenticated_client.get('/api/v1/admin/users')
        assert response.status_code == 403
        assert response.get_json()['message'] == 'Admin privileges required'

    def test_anonymous_unauthorized(self, client):
        assert client.get('/api/v1/admin/dashboard').status_code == 401

    def test_default_admin_seeded(self, admin_client):
        users = admin_client.get('/api/v1/admin/users?search=admin@tasktracker.com').get_json()['users']
        assert [u['role'] for u in users] == ['admin']


class TestUserManagement:

    def test_create_and_promote(self, admin_client):
        suffix = uuid.uuid4().hex[:8]
        response = admin_client.post('/api/v1/admin/users', json={
            'username': f'staff_{suffix}', 'email': f'staff_{suffix}@example.com', 'password': 'Staff1234',
        })
        assert response.status_code == 201
        user = response.get_json()['user']

        promoted = admin_client.put(f"/api/v1/admin/users/{user['id']}/role", json={'role': 'admin'})
        assert promoted.get_json()['user']['is_admin'] is True

        bad_role = admin_client.put(f"/api/v1/admin/users/{user['id']}/role", json={'role': 'owner'})
        assert bad_role.status_code == 400

    def test_cannot_demote_or_deactivate_self(self, admin_client, admin_user):
        response = admin_client.put(f'/api/v1/admin/users/{admin_user.id}/role', json={'role': 'user'})
        assert response.status_code == 409
        response = admin_client.put(f'/api/v1/admin/users/{admin_user.id}/active', json={'active': False})
        assert response.status_code == 409

    def test_deactivated_user_cannot_login(self, admin_client, client, make_user):
        user = make_user()
        response = admin_client.put(f'/api/v1/admin/users/{user.id}/active', json={'active': False})
        assert response.get_json()['user']['active'] is False

        response = client.post('/api/v1/auth/login', json={'email': user.email, 'password': user.password})
        assert response.status_code == 401
        assert response.get_json()['message'] == 'Account is inactive'

    def test_active_flag_must_be_boolean(self, admin_client, make_user):
        user = make_user()
        response = admin_client.put(f'/api/v1/admin/users/{user.id}/active', json={'active': 'false'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'active must be true or false'
        assert admin_client.get(f'/api/v1/admin/users/{user.id}').get_json()['user']['active'] is True

    def test_unknown_user(self, admin_client):
        assert admin_client.get('/api/v1/admin/users/999999').status_code == 404


class TestAdminInsights:

    def test_dashboard(self, admin_client):
        dashboard = admin_client.get('/api/v1/admin/dashboard').get_json()['dashboard']
        assert dashboard['users']['admins'] >= 1
        assert len(dashboard['tasks']['created_last_7_days']) == 7

    def test_system_health(self, admin_client):
        body = admin_client.get('/api/v1/admin/system-health').get_json()
        assert body['database']['healthy'] is True
        assert 'api_tasks' in body['blueprints']['loaded']
        assert body['startup']['ready'] is True

    def test_award_points(self, admin_client, make_user):
        user = make_user()
        response = admin_client.post('/api/v1/gamification/points', json={'user_id': user.id, 'points': 40})
        assert response.status_code == 200
        assert response.get_json()['progress']['current_points'] == 40
