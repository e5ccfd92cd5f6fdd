"""
Tests for authentication routes.
"""


class TestRegister:

    def test_register_creates_user_role(self, client):
        response = client.post('/auth/register', json={
            'username': 'newdriver',
            'email': 'NewDriver@Example.com',
            'password': 'secret123',
            'full_name': 'New Driver'
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['success'] is True
        assert data['data']['role'] == 'user'
        assert data['data']['email'] == 'newdriver@example.com'

    def test_duplicate_username(self, client, make_user):
        make_user(username='taken')
        response = client.post('/auth/register', json={
            'username': 'taken',
            'email': 'other@example.com',
            'password': 'secret123'
        })
        assert response.status_code == 409
        assert response.get_json()['code'] == 'conflict'

    def test_invalid_payload(self, client):
        response = client.post('/auth/register', json={
            'username': 'x',
            'email': 'not-an-email',
            'password': '123'
        })
        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert set(errors) >= {'username', 'email', 'password'}


class TestLogin:

    def test_login_and_me(self, admin_client):
        response = admin_client.get('/auth/me')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['username'] == 'admin'
        assert 'stations.approve' in data['permissions']

    def test_wrong_password(self, client):
        response = client.post('/auth/login', json={'username': 'admin', 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_missing_fields(self, client):
        response = client.post('/auth/login', json={})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_data'

    def test_logout(self, admin_client):
        assert admin_client.post('/auth/logout').status_code == 200
        assert admin_client.get('/auth/me').status_code == 401

    def test_anonymous_gets_json_401(self, client):
        response = client.get('/api/bookings/mine')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'unauthorized'

    def test_csrf_token_endpoint(self, client):
        response = client.get('/auth/csrf-token')
        assert response.status_code == 200
        assert response.get_json()['data']['csrf_token']
