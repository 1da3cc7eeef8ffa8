"""
Integration tests for /api/auth routes.
"""
import json

import pytest


def register(client, **overrides):
    payload = {'email': 'New.User@Example.com', 'fullName': 'New User', 'password': 'secret1'}
    payload.update(overrides)
    return client.post('/api/auth/register', json=payload)


class TestRegister:

    def test_register_success(self, client):
        response = register(client)
        assert response.status_code == 201

        data = json.loads(response.data)
        assert data['success'] is True
        user = data['data']['user']
        assert user['email'] == 'new.user@example.com'
        assert user['role'] == 'user'
        assert 'passwordHash' not in user and 'password_hash' not in user
        assert data['data']['token']
        assert data['data']['refreshToken']

    def test_register_organizer(self, client):
        response = register(client, role='organizer')
        assert json.loads(response.data)['data']['user']['role'] == 'organizer'

    @pytest.mark.parametrize("overrides", [
        {'email': ''},
        {'fullName': None},
        {'password': ''},
    ])
    def test_missing_fields(self, client, overrides):
        response = register(client, **overrides)
        assert response.status_code == 400
        assert json.loads(response.data)['success'] is False

    def test_short_password(self, client):
        response = register(client, password='abc')
        assert response.status_code == 400
        assert 'at least 6' in json.loads(response.data)['message']

    def test_malformed_email(self, client):
        response = register(client, email='not-an-email')
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['message'] == 'Validation failed'
        assert 'Please enter a valid email' in data['errors']

    def test_admin_role_not_self_service(self, client):
        assert register(client, role='admin').status_code == 400

    def test_duplicate_email(self, client):
        register(client)
        response = register(client, email='new.user@EXAMPLE.com')
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'User with this email already exists'

    def test_non_object_body(self, client):
        response = client.post('/api/auth/register', json=['a', 'b'])
        assert response.status_code == 400


class TestLogin:

    def test_login_success(self, client, player):
        response = client.post('/api/auth/login', json={'email': 'PLAYER@example.com', 'password': 'password123'})
        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert data['user']['id'] == player.id
        assert data['token']

    def test_wrong_password_and_unknown_email_look_the_same(self, client, player):
        wrong = client.post('/api/auth/login', json={'email': 'player@example.com', 'password': 'nope123'})
        unknown = client.post('/api/auth/login', json={'email': 'ghost@example.com', 'password': 'nope123'})
        assert wrong.status_code == unknown.status_code == 401
        assert json.loads(wrong.data)['message'] == json.loads(unknown.data)['message'] == 'Invalid credentials'

    def test_missing_fields(self, client):
        assert client.post('/api/auth/login', json={'email': 'a@b.co'}).status_code == 400


class TestRefresh:

    def test_refresh_issues_new_pair(self, client):
        tokens = json.loads(register(client).data)['data']
        response = client.post('/api/auth/refresh', json={'refreshToken': tokens['refreshToken']})
        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert data['token'] and data['refreshToken']

    def test_access_token_is_rejected(self, client):
        tokens = json.loads(register(client).data)['data']
        response = client.post('/api/auth/refresh', json={'refreshToken': tokens['token']})
        assert response.status_code == 401

    def test_missing_token(self, client):
        assert client.post('/api/auth/refresh', json={}).status_code == 400


class TestProfile:

    def test_requires_authentication(self, client):
        response = client.get('/api/auth/profile')
        assert response.status_code == 401
        data = json.loads(response.data)
        assert data == {'success': False, 'message': 'Access denied. Authentication required.'}

    def test_bad_token(self, client):
        response = client.get('/api/auth/profile', headers={'Authorization': 'Bearer garbage'})
        assert response.status_code == 401

    def test_get_profile(self, client, player, player_headers):
        response = client.get('/api/auth/profile', headers=player_headers)
        assert response.status_code == 200
        assert json.loads(response.data)['data']['user']['email'] == 'player@example.com'

    def test_update_profile(self, client, player_headers):
        response = client.put('/api/auth/profile', headers=player_headers,
                              json={'fullName': 'Patricia Player', 'avatarUrl': 'https://img.example.com/p.png'})
        assert response.status_code == 200
        user = json.loads(response.data)['data']['user']
        assert user['fullName'] == 'Patricia Player'
        assert user['avatarUrl'] == 'https://img.example.com/p.png'

    def test_authentication_does_not_leak_between_requests(self, client, player_headers):
        assert client.get('/api/auth/profile', headers=player_headers).status_code == 200
        assert client.get('/api/auth/profile').status_code == 401


class TestChangePassword:

    def test_change_password(self, client, player_headers):
        response = client.put('/api/auth/change-password', headers=player_headers,
                              json={'currentPassword': 'password123', 'newPassword': 'newpass456'})
        assert response.status_code == 200

        login = client.post('/api/auth/login', json={'email': 'player@example.com', 'password': 'newpass456'})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, player_headers):
        response = client.put('/api/auth/change-password', headers=player_headers,
                              json={'currentPassword': 'wrong-one', 'newPassword': 'newpass456'})
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'Current password is incorrect'


class TestLogout:

    def test_logout(self, client, player_headers):
        response = client.post('/api/auth/logout', headers=player_headers)
        assert response.status_code == 200
        assert json.loads(response.data)['success'] is True
