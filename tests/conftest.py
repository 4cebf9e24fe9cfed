"""
ESG Manager - Test Configuration and Fixtures

Fixtures open short-lived app contexts and hand back plain values (ids,
emails, headers) so that each test-client request gets a fresh ``g`` and
Flask-Login never sees a user cached by an earlier request.
"""
from types import SimpleNamespace

import pytest
from faker import Faker

from config import Config
from esg_manager import create_app, db
from esg_manager.auth.tokens import create_access_token
from esg_manager.models import KeyIssue, User

fake = Faker()

TEST_PASSWORD = "Passw0rdTest"


class TestingConfig(Config):
    __test__ = False

    TESTING = True
    APP_ENV = "testing"
    SECRET_KEY = "test-secret-key"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    EVALUATION_MODE = "random"
    EVALUATION_DELAY = 0
    EVALUATION_SEED = 1234
    PASS_THRESHOLD = 60


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, email=None, password=TEST_PASSWORD):
    with app.app_context():
        user = User(
            email=email or fake.unique.email().lower(),
            first_name=fake.first_name()[:50],
            last_name=fake.last_name()[:50],
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return SimpleNamespace(
            id=user.id,
            email=user.email,
            password=password,
            headers={"Authorization": f"Bearer {create_access_token(user)}"},
        )


@pytest.fixture
def user(app):
    return make_user(app)


@pytest.fixture
def other_user(app):
    return make_user(app)


@pytest.fixture
def auth_headers(user):
    return user.headers


def issue_ids(app, *codes):
    with app.app_context():
        return [KeyIssue.query.filter_by(code=code).one().id for code in codes]


@pytest.fixture
def project_payload(app):
    """A valid submission touching all three pillars."""
    emissions, renewables, safety, development, board = issue_ids(
        app,
        "scope1_2_emissions",
        "renewable_energy_programs",
        "workplace_safety_measures",
        "employee_development_initiatives",
        "board_independence_percentage",
    )
    return {
        "project_name": "Solar Rooftop Programme",
        "industry": "Energy",
        "annual_revenue": 1250.5,
        "description": "Rooftop solar across three plants",
        "project_data": [
            {"issue_id": emissions, "value": "18250"},
            {"issue_id": renewables, "value": "Solar"},
            {"issue_id": safety, "value": "ISO 45001 certified"},
            {"issue_id": development, "value": "Annual training budget per employee"},
            {"issue_id": board, "value": "45"},
        ],
    }


@pytest.fixture
def create_project(client, auth_headers, project_payload):
    """Create a project through the API and return its JSON body."""
    def _create(**overrides):
        payload = dict(project_payload, **overrides)
        response = client.post("/api/projects", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]
    return _create


@pytest.fixture
def logged_in(client, user):
    """Log the test user into the web UI with a session cookie."""
    response = client.post("/login", data={"email": user.email, "password": user.password})
    assert response.status_code == 302
    return client
