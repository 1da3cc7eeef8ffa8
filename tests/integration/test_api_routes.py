"""
Integration tests for app-level routes: health, unknown routes, error envelope.
"""
import json


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_check(self, client):
        response = client.get('/health')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['success'] is True
        assert data['data'] == {'backend': 'sql', 'reachable': True}


class TestEnvelope:

    def test_unknown_route(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert json.loads(response.data) == {'success': False, 'message': 'Route not found'}

    def test_method_not_allowed(self, client):
        response = client.patch('/api/auth/login')
        assert response.status_code == 405
        assert json.loads(response.data)['success'] is False

    def test_unexpected_error_is_500(self, client, app, mocker):
        mocker.patch.object(app.tournaments, 'list_tournaments', side_effect=RuntimeError('boom'))
        response = client.get('/api/tournaments')
        assert response.status_code == 500

        data = json.loads(response.data)
        assert data['success'] is False
        assert data['message'] == 'Server error while fetching tournaments'
        assert data['error'] == 'boom'

    def test_error_detail_hidden_when_disabled(self, client, app, mocker):
        mocker.patch.object(app.tournaments, 'list_tournaments', side_effect=RuntimeError('boom'))
        mocker.patch.dict(app.config, {'EXPOSE_ERROR_DETAIL': False})
        data = json.loads(client.get('/api/tournaments').data)
        assert 'error' not in data
