"""
Pytest fixtures for posadmin backend tests.

Provides an in-memory database per test, a test client, stores, users
for each system role, and helpers to log in.
"""

import pytest

from posadmin import create_app
from posadmin.extensions import db
from posadmin.models import StoreSettings, User
from posadmin.services.auth_service import hash_password

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing, with a fresh schema."""
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    """Create the main store."""
    store = StoreSettings(name="Main Store", branch="Downtown")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def second_store(db_session):
    store = StoreSettings(name="Second Store", branch="Airport")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def make_user(db_session, store):
    """Factory: make_user("alice", role="manager", is_active=True)."""
    def _make(username, role="cashier", password=DEFAULT_PASSWORD, **fields):
        user = User(
            username=username,
            display_name=fields.pop("display_name", username.title()),
            role=role,
            store_id=fields.pop("store_id", store.id),
            password_hash=hash_password(password),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin", role="admin", email="admin@example.com")


@pytest.fixture(scope='function')
def manager_user(make_user):
    return make_user("manager", role="manager")


@pytest.fixture(scope='function')
def cashier_user(make_user):
    return make_user("cashier", role="cashier")


def login(client, username: str, password: str = DEFAULT_PASSWORD):
    """Helper to log in; returns the response."""
    return client.post('/api/auth/login', json={
        'username': username,
        'password': password,
    })


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get an access token for a user."""
    response = login(client, username, password)
    if response.status_code == 200:
        return response.get_json().get('accessToken')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.username))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.username))
