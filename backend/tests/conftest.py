"""
Pytest fixtures for CRM backend tests.

Provides test database setup, role/user fixtures, catalogue fixtures and
the test client.
"""

import pytest

from crm import create_app
from crm.extensions import db
from crm.models import Client, Product, Supplier, User, UserRole
from crm.services import session_service
from crm.services.auth_service import create_default_roles, hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SETUP_TOKEN': 'setup-secret',
        'GOOGLE_DRIVE_FOLDER_ID': 'folder-1',
        'GOOGLE_SHEET_ID': 'sheet-1',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt at cost 12 is slow; hash the shared test password once."""
    return hash_password(PASSWORD)


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
def roles(db_session):
    """Setup default roles (main, doctor, general)."""
    created = create_default_roles()
    db_session.commit()
    return created


def _make_user(db_session, roles, password_hash, role_name: str, email: str) -> User:
    user = User(
        full_name=f"{role_name.title()} User",
        email=email,
        password_hash=password_hash,
        is_active=True,
    )
    user.user_roles.append(UserRole(role=roles[role_name]))
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def main_user(db_session, roles, password_hash):
    return _make_user(db_session, roles, password_hash, "main", "main@crm.local")


@pytest.fixture(scope='function')
def doctor_user(db_session, roles, password_hash):
    return _make_user(db_session, roles, password_hash, "doctor", "doctor@crm.local")


@pytest.fixture(scope='function')
def general_user(db_session, roles, password_hash):
    return _make_user(db_session, roles, password_hash, "general", "general@crm.local")


def _headers_for(user: User) -> dict:
    _, token = session_service.create_session(user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def main_headers(main_user):
    return _headers_for(main_user)


@pytest.fixture(scope='function')
def doctor_headers(doctor_user):
    return _headers_for(doctor_user)


@pytest.fixture(scope='function')
def general_headers(general_user):
    return _headers_for(general_user)


@pytest.fixture(scope='function')
def product(db_session):
    """Active product with no movements."""
    product = Product(code="AMOX-500", official_name="Amoxicillin 500mg", default_sell_price=4)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def client_account(db_session):
    account = Client(name="Central Pharmacy", client_type="pharmacy")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(business_name="Acme Pharma Supply", supplier_country="NL")
    db_session.add(supplier)
    db_session.commit()
    return supplier


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
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
