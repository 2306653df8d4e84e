"""
Root pytest configuration and fixtures for unit, integration and security tests.

Service tests run inside ``db_session`` (an app context is pushed for the test).
API tests use the test client with no app context pushed, so every request
gets a fresh app context and a fresh ``current_user``.
"""
import pytest
import os
import sys
import uuid
from pathlib import Path
from types import SimpleNamespace

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Test configuration
os.environ['FLASK_ENV'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['SESSION_SECRET'] = 'test-secret-key-for-testing-only'
os.environ['SEED_ON_STARTUP'] = 'true'
os.environ.pop('REDIS_URL', None)

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(scope='session')
def app():
    """Create and configure a test Flask application (schema and catalogue seeded)."""
    from app import create_app
    from config import TestingConfig
    from models import db

    test_app = create_app(TestingConfig)

    yield test_app

    with test_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Push an app context and hand out the database session."""
    from models import db

    with app.app_context():
        yield db.session
        db.session.rollback()
        db.session.remove()


def _create_user(role='user', password=TEST_PASSWORD):
    from models import db, User

    unique_id = uuid.uuid4().hex[:8]
    user = User(
        username=f'testuser_{unique_id}',
        email=f'test_{unique_id}@example.com',
        first_name='Test',
        last_name='User',
        role=role,
        active=True,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def test_user(db_session):
    """A fresh user bound to the ``db_session`` context."""
    return _create_user()


@pytest.fixture(scope='function')
def other_user(db_session):
    return _create_user()


@pytest.fixture(scope='function')
def make_user(app):
    """
    Factory for API tests: creates a user in a short-lived app context and
    returns plain values (id, username, email, password).
    """
    def factory(role='user', password=TEST_PASSWORD):
        from models import db

        with app.app_context():
            user = _create_user(role=role, password=password)
            data = SimpleNamespace(id=user.id, username=user.username, email=user.email, password=password)
            db.session.remove()
        return data

    return factory


def login_as(client, user_id):
    """Log a test client in through the Flask-Login session keys."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user_id)
        sess['_fresh'] = True
    return client


@pytest.fixture(scope='function')
def api_user(make_user):
    return make_user()


@pytest.fixture(scope='function')
def authenticated_client(client, api_user):
    """Create an authenticated test client for ``api_user``."""
    return login_as(client, api_user.id)


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user(role='admin')


@pytest.fixture(scope='function')
def admin_client(app, admin_user):
    return login_as(app.test_client(), admin_user.id)


@pytest.fixture(scope='function')
def login():
    """Expose ``login_as`` to tests that need more than one logged-in client."""
    return login_as
