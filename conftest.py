"""
Shared pytest fixtures

Every test gets its own application with a fresh in-memory SQLite database
and a temporary upload folder.
"""

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config.settings import TestingConfig
from extensions import db
from models.user import User

ADMIN_EMAIL = 'admin@storefront.test'
ADMIN_PASSWORD = 'admin123'


@pytest.fixture
def app(tmp_path):
    """Create the Flask application for testing"""
    app = create_app(TestingConfig)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


def _create_user(app, **fields):
    with app.app_context():
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def admin_id(app):
    return _create_user(app, email=ADMIN_EMAIL, name='Admin', password=ADMIN_PASSWORD, role='admin')


@pytest.fixture
def customer_id(app):
    return _create_user(
        app,
        email='budi@example.com',
        name='Budi Santoso',
        password='secret123',
        label='vip',
        phone='628123456789',
    )


@pytest.fixture
def auth_headers(client, admin_id):
    """Get authentication headers for the admin by logging in"""
    response = client.post('/api/auth/login', json={
        'email': ADMIN_EMAIL,
        'password': ADMIN_PASSWORD,
    })
    assert response.status_code == 200
    token = response.get_json()['access_token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_headers(app):
    """Bearer headers for an arbitrary user id, bypassing login"""
    def _make(user_id):
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def customer_headers(make_headers, customer_id):
    return make_headers(customer_id)
