"""
Health Endpoint Tests
"""


class TestHealthEndpoints:

    def test_api_health(self, client):
        response = client.get('/api/v1/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'healthy'}

    def test_liveness(self, client):
        body = client.get('/health/live').get_json()
        assert body['status'] == 'alive'
        assert body['uptime_seconds'] >= 0

    def test_readiness(self, client):
        response = client.get('/health/ready')
        assert response.status_code == 200
        assert response.get_json()['checks']['database']['healthy'] is True

    def test_startup_complete(self, client):
        assert client.get('/health/startup').get_json()['status'] == 'started'

    def test_detailed(self, client):
        body = client.get('/health/detailed').get_json()
        assert body['status'] in ('healthy', 'degraded')
        assert 'memory_percent' in body['system']

    def test_database_down_returns_503(self, client, mocker):
        mocker.patch('routes.health_production.check_database_health', return_value={'healthy': False})
        response = client.get('/api/v1/health')
        assert response.status_code == 503
        assert response.get_json()['status'] == 'unhealthy'

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/v1/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
