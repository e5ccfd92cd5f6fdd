"""
Pytest configuration and fixtures.
Each test gets its own SQLite file and a controllable clock.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

# Reference day used by most tests; the clock starts at 08:00 UTC
BASE_DAY = datetime(2030, 1, 15, tzinfo=timezone.utc)

PASSWORD = 'secret123'


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    """Aware UTC datetime on the reference day."""
    return BASE_DAY + timedelta(days=days, hours=hour, minutes=minute)


class FrozenClock:
    """Clock callable for app.config['CLOCK']."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime):
        self.now = now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(at(8))


@pytest.fixture
def app(tmp_path, clock):
    """Create test application with an isolated database."""
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config['DATABASE_PATH'] = str(tmp_path / 'chargeslot_test.db')
    app.config['CLOCK'] = clock

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def ctx(app):
    """Application context for calling model functions directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory: create a user and return its Actor."""
    from models.user import Actor, create_user

    counter = itertools.count(1)

    def _make(role='user', username=None):
        username = username or f'{role}{next(counter)}'
        with app.app_context():
            user_id = create_user(
                username=username,
                email=f'{username}@example.com',
                password=PASSWORD,
                full_name=username.title(),
                role=role
            )
        return Actor(user_id=user_id, role=role)

    return _make


@pytest.fixture
def make_station(app):
    """Factory: create a station owned by an actor, approved by default."""
    from models.station import create_station, approve_station, reject_station

    counter = itertools.count(1)

    def _make(owner, total_ports=2, status='accepted', name=None):
        n = next(counter)
        with app.app_context():
            station_id = create_station(
                name=name or f'Station {n}',
                address=f'{n} Charging Street',
                latitude=40.0 + n / 1000,
                longitude=-3.0 - n / 1000,
                total_ports=total_ports,
                owner_id=owner.user_id
            )
            if status == 'accepted':
                approve_station(station_id)
            elif status == 'rejected':
                reject_station(station_id)
        return station_id

    return _make


@pytest.fixture
def owner(make_user):
    return make_user('owner', username='olivia')


@pytest.fixture
def station(make_station, owner):
    """Approved two-port station owned by ``owner``."""
    return make_station(owner, total_ports=2)


@pytest.fixture
def login(app):
    """Factory: new test client with an authenticated session."""

    def _login(username, password=PASSWORD):
        client = app.test_client()
        response = client.post('/auth/login', json={
            'username': username,
            'password': password
        })
        assert response.status_code == 200, response.get_json()
        return client

    return _login


@pytest.fixture
def admin_client(login):
    """Client logged in as the seeded admin."""
    return login('admin', 'admin123')
