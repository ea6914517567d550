"""
Pytest fixtures for VisionX backend tests.

Provides the app on in-memory SQLite, per-test table wipe, user/customer
factories and auth header helpers.
"""

import pytest
from visionx import create_app
from visionx.config import TestConfig
from visionx.extensions import db
from visionx.models import Customer, InventoryItem
from visionx.services import auth_service


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

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
def make_user(db_session):
    """Factory: make_user("patient", email="p@x.com")."""
    counter = {"n": 0}

    def _make(role="staff", email=None, name=None, password=PASSWORD):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@visionx.test"
        return auth_service.create_user(name or f"{role.title()} {counter['n']}", email, password, role)

    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    """Factory: make_customer(name="Asha", email=..., age=30, gender="Female")."""

    def _make(name="Test Customer", **fields):
        customer = Customer(name=name, **fields)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture(scope='function')
def make_item(db_session):
    def _make(category="frame", brand="Ray-Ban", model="RB2140", price=100.0, stock=10, **fields):
        item = InventoryItem(category=category, brand=brand, model=model, price=price, stock=stock, **fields)
        db_session.add(item)
        db_session.commit()
        return item

    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin", email="admin@visionx.test")


@pytest.fixture(scope='function')
def staff_user(make_user):
    return make_user("staff", email="staff@visionx.test")


@pytest.fixture(scope='function')
def doctor_user(make_user):
    return make_user("doctor", email="doctor@visionx.test")


@pytest.fixture(scope='function')
def patient_user(make_user):
    return make_user("patient", email="patient@visionx.test")


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email, PASSWORD))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user.email, PASSWORD))


@pytest.fixture(scope='function')
def doctor_headers(client, doctor_user):
    return auth_headers(get_auth_token(client, doctor_user.email, PASSWORD))


@pytest.fixture(scope='function')
def patient_headers(client, patient_user):
    return auth_headers(get_auth_token(client, patient_user.email, PASSWORD))


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
