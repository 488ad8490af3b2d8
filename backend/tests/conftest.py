"""
Pytest fixtures for WebPOS backend tests.

Provides the test app (in-memory SQLite), a per-test table wipe, staff
users, a product factory and authentication helpers.
"""

import pytest

from webpos import create_app
from webpos.extensions import db
from webpos.models import Product, Sale
from webpos.services.container import get_services


ADMIN_PASSWORD = "Password123!"
CASHIER_PASSWORD = "Cashier123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(config_name="testing")

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
        db.session.rollback()
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def services(app, db_session):
    return get_services()


@pytest.fixture(scope='function')
def admin_user(services):
    return services.credentials.create_user("admin", ADMIN_PASSWORD, role="admin")


@pytest.fixture(scope='function')
def cashier_user(services):
    return services.credentials.create_user("cashier", CASHIER_PASSWORD, role="cashier")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(stock=10, price=1000, cost=600) -> Product."""
    counter = {"n": 0}

    def _make(stock=10, price=1000, cost=600, name=None, sku=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            price=price,
            cost=cost,
            stock=stock,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, "cashier", CASHIER_PASSWORD))


def stock_of(session, product_id: int) -> int:
    """Read stock straight from the database, bypassing the identity map."""
    return session.query(Product.stock).filter(Product.id == product_id).scalar()


def sale_count(session) -> int:
    return session.query(Sale).count()
