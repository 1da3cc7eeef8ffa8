"""
Pytest configuration and fixtures for arena tests.
"""
import os
import sys
from datetime import datetime, timedelta

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from arena.app import create_app
from arena.documents import Role, Tournament
from arena.models import db
from arena.stores import MemoryStore
from arena.tokens import issue_token_pair


@pytest.fixture(scope='session')
def app():
    """Create application for testing (SQL store on in-memory SQLite)."""
    app = create_app('testing')
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all tables before each test."""
    with app.app_context():
        db.session.remove()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
    yield
    with app.app_context():
        db.session.remove()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client on clean tables."""
    return app.test_client()


@pytest.fixture
def app_ctx(app, db_session):
    """Push an application context for tests that call managers directly."""
    with app.app_context():
        yield app


@pytest.fixture
def memory_store():
    return MemoryStore()


# ==================== Users and tokens ====================

def _make_user(app, email, full_name, role):
    with app.app_context():
        if role == Role.ADMIN.value:
            return app.accounts.create_admin(email, full_name, 'password123')
        user, _ = app.accounts.register(email, full_name, 'password123', role)
        return user


def _headers(app, user):
    with app.app_context():
        tokens = issue_token_pair(user.id)
    return {'Authorization': f"Bearer {tokens['token']}"}


@pytest.fixture
def organizer(app, db_session):
    return _make_user(app, 'organizer@example.com', 'Olga Organizer', Role.ORGANIZER.value)


@pytest.fixture
def other_organizer(app, db_session):
    return _make_user(app, 'rival@example.com', 'Rita Rival', Role.ORGANIZER.value)


@pytest.fixture
def player(app, db_session):
    return _make_user(app, 'player@example.com', 'Pat Player', Role.USER.value)


@pytest.fixture
def second_player(app, db_session):
    return _make_user(app, 'second@example.com', 'Sam Second', Role.USER.value)


@pytest.fixture
def admin(app, db_session):
    return _make_user(app, 'admin@example.com', 'Ada Admin', Role.ADMIN.value)


@pytest.fixture
def organizer_headers(app, organizer):
    return _headers(app, organizer)


@pytest.fixture
def other_organizer_headers(app, other_organizer):
    return _headers(app, other_organizer)


@pytest.fixture
def player_headers(app, player):
    return _headers(app, player)


@pytest.fixture
def second_player_headers(app, second_player):
    return _headers(app, second_player)


@pytest.fixture
def admin_headers(app, admin):
    return _headers(app, admin)


# ==================== Sample records ====================

def future(days: float) -> datetime:
    return datetime.utcnow() + timedelta(days=days)


@pytest.fixture
def sample_tournament(app, organizer):
    """An upcoming tournament owned by the organizer, capacity 2."""
    with app.app_context():
        return app.store.insert('tournament', Tournament(
            name='Test Cup',
            organizer_id=organizer.id,
            format='single_elimination',
            game_name='Rocket League',
            description='Weekly 1v1 cup',
            start_date=future(1),
            end_date=future(2),
            max_players=2,
        ))


@pytest.fixture
def registered_competitors(app, sample_tournament, player, second_player):
    """Both players registered in the sample tournament."""
    with app.app_context():
        first, _ = app.tournaments.register_competitor(sample_tournament.id, player, {'name': 'Team Pat'})
        second, _ = app.tournaments.register_competitor(sample_tournament.id, second_player, {})
        return first, second
