"""
Pytest fixtures for the voucher backend tests.

Every test gets a fresh app bound to its own in-memory SQLite database,
the three demo users (ids 1..3), and logged-in test clients per role.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from voucherdesk import create_app
from voucherdesk.extensions import db
from voucherdesk.services import voucher_service
from voucherdesk.services.auth_service import DEMO_PASSWORD, ensure_demo_users
from voucherdesk.storage import get_storage
from voucherdesk.time_utils import utcnow


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'AUTH_MODE': 'strict',
    'SEED_DEMO_USERS': False,
    'BCRYPT_ROUNDS': 4,
}


def make_app(**overrides):
    config = dict(TEST_CONFIG)
    config.update(overrides)
    return create_app(config)


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = make_app()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def bypass_app():
    """Application with the development auth bypass switched on."""
    app = make_app(AUTH_MODE='bypass')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def storage(app):
    return get_storage()


@pytest.fixture(scope='function')
def users(storage):
    """Demo owner (id 1), employee (id 2) and customer (id 3)."""
    with storage.transaction():
        created = ensure_demo_users(storage)
    return {u.role: u for u in created}


@pytest.fixture(scope='function')
def owner(users):
    return users['owner']


@pytest.fixture(scope='function')
def employee(users):
    return users['employee']


@pytest.fixture(scope='function')
def customer(users):
    return users['customer']


@pytest.fixture(scope='function')
def voucher(storage, owner):
    """Voucher 1 with 10 units in owner stock."""
    return voucher_service.create_voucher(storage, {
        'code': 'FOOD-10',
        'type': 'food',
        'value': Decimal('10.00'),
        'initial_stock': 10,
        'expiry_date': utcnow() + timedelta(days=90),
    }, created_by=owner.id)


@pytest.fixture(scope='function')
def client(app):
    """Anonymous test client."""
    return app.test_client()


def login(app, username: str, password: str = DEMO_PASSWORD):
    """Return a test client carrying a session cookie for username."""
    test_client = app.test_client()
    response = test_client.post('/api/login', json={
        'username': username,
        'password': password,
    })
    assert response.status_code == 200, response.get_json()
    return test_client


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_client(app, owner):
    return login(app, owner.username)


@pytest.fixture(scope='function')
def employee_client(app, employee):
    return login(app, employee.username)


@pytest.fixture(scope='function')
def customer_client(app, customer):
    return login(app, customer.username)
