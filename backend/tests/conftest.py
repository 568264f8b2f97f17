"""
Pytest fixtures for Warehub backend tests.

Provides test database setup, owner fixtures, and test client.
"""

import pytest

from warehub import create_app
from warehub.extensions import db
from warehub.models import Warehouse
from warehub.services.auth_service import create_user
from warehub.services.session_service import create_session
from warehub.time_utils import utcnow


TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'GEMINI_API_KEY': '',
        'CSV_UPLOAD_MAX_BYTES': 1024 * 1024,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user_a(db_session):
    """Owner of the warehouses under test."""
    return create_user("alice@example.com", TEST_PASSWORD, "Alice")


@pytest.fixture(scope='function')
def user_b(db_session):
    """A second, unrelated owner."""
    return create_user("bob@example.com", TEST_PASSWORD, "Bob")


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user("admin@example.com", TEST_PASSWORD, "Admin", is_admin=True)


@pytest.fixture(scope='function')
def headers_a(user_a):
    return auth_headers(token_for(user_a))


@pytest.fixture(scope='function')
def headers_b(user_b):
    return auth_headers(token_for(user_b))


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(token_for(admin_user))


@pytest.fixture(scope='function')
def warehouse_a(db_session, user_a):
    """Empty warehouse owned by user_a."""
    return make_warehouse(db_session, user_a, name="Main Depot")


def make_warehouse(session, owner, *, name="Depot", inventory=None) -> Warehouse:
    now = utcnow()
    warehouse = Warehouse(
        owner_id=owner.id,
        name=name,
        description="",
        address="1 Dock Road",
        lat=52.37,
        lng=4.89,
        inventory=list(inventory or []),
        created_at=now,
        updated_at=now,
    )
    session.add(warehouse)
    session.commit()
    return warehouse


def token_for(user) -> str:
    _session, token = create_session(user.id)
    return token


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
