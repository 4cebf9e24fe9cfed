"""
Tests for the JSON auth endpoints: register, login, profile and bearer tokens
"""
from datetime import timedelta

import pytest

from esg_manager import db
from esg_manager.auth.tokens import create_access_token, decode_access_token, parse_expires_in
from esg_manager.models import User

REGISTRATION = {
    "firstName": "Somchai",
    "lastName": "Jaidee",
    "email": "Somchai@Example.com ",
    "password": "GreenEnergy1",
}


class TestRegister:

    def test_register_returns_user_and_token(self, client):
        response = client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["email"] == "somchai@example.com"
        assert body["data"]["user"]["first_name"] == "Somchai"
        assert "password_hash" not in body["data"]["user"]
        assert body["data"]["token"]

    def test_register_stores_hashed_password(self, app, client):
        client.post("/api/auth/register", json=REGISTRATION)

        with app.app_context():
            user = User.query.filter_by(email="somchai@example.com").one()
            assert user.password_hash != REGISTRATION["password"]
            assert user.check_password(REGISTRATION["password"])

    def test_register_duplicate_email(self, client):
        client.post("/api/auth/register", json=REGISTRATION)
        response = client.post(
            "/api/auth/register", json=dict(REGISTRATION, email="SOMCHAI@example.com")
        )

        assert response.status_code == 400
        assert response.get_json()["message"] == "An account with this email already exists"

    def test_register_validation_errors(self, client):
        response = client.post("/api/auth/register", json={
            "firstName": "",
            "lastName": "x" * 51,
            "email": "not-an-email",
            "password": "short",
        })

        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {e["field"] for e in body["errors"]}
        assert fields == {"firstName", "lastName", "email", "password"}

    def test_register_password_needs_mixed_case_and_digit(self, client):
        response = client.post(
            "/api/auth/register", json=dict(REGISTRATION, password="alllowercase1")
        )

        assert response.status_code == 400
        assert "uppercase" in response.get_json()["errors"][0]["message"]

    def test_register_without_body(self, client):
        response = client.post("/api/auth/register")

        assert response.status_code == 400

    @pytest.mark.parametrize("url", ["/api/auth/register", "/api/auth/login"])
    def test_json_array_body(self, client, url):
        response = client.post(url, json=[1, 2])

        assert response.status_code == 400
        body = response.get_json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "body"


class TestLogin:

    def test_login_success(self, client, user):
        response = client.post(
            "/api/auth/login", json={"email": user.email.upper(), "password": user.password}
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["message"] == "Login successful"
        assert body["data"]["user"]["user_id"] == user.id
        assert body["data"]["token"]

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "Whatever1"}
        )

        assert response.status_code == 401
        assert response.get_json()["message"] == "No account found with this email address."

    def test_login_wrong_password(self, client, user):
        response = client.post(
            "/api/auth/login", json={"email": user.email, "password": "WrongPass1"}
        )

        assert response.status_code == 401
        assert response.get_json()["message"].startswith("Invalid email or password")

    def test_login_requires_valid_email(self, client):
        response = client.post("/api/auth/login", json={"email": "bad", "password": ""})

        assert response.status_code == 400
        fields = {e["field"] for e in response.get_json()["errors"]}
        assert fields == {"email", "password"}


class TestProfile:

    def test_profile_with_token(self, client, user):
        response = client.get("/api/auth/profile", headers=user.headers)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["user_id"] == user.id
        assert data["email"] == user.email
        assert set(data) == {"user_id", "email", "first_name", "last_name"}

    def test_profile_without_token(self, client):
        response = client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.get_json()["message"] == "Access denied. No token provided."

    def test_profile_with_garbage_token(self, client):
        response = client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"}
        )

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid or expired token"

    def test_profile_with_wrong_scheme(self, client, user):
        token = user.headers["Authorization"].split(" ", 1)[1]
        response = client.get("/api/auth/profile", headers={"Authorization": f"Basic {token}"})

        assert response.status_code == 401

    def test_profile_with_expired_token(self, app, client, user):
        with app.app_context():
            token = create_access_token(
                db.session.get(User, user.id), expires_delta=timedelta(seconds=-10)
            )
        response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid or expired token"

    def test_token_for_deleted_user(self, app, client, user):
        with app.app_context():
            db.session.delete(db.session.get(User, user.id))
            db.session.commit()

        response = client.get("/api/auth/profile", headers=user.headers)

        assert response.status_code == 401


class TestTokens:

    def test_parse_expires_in(self):
        assert parse_expires_in("7d") == timedelta(days=7)
        assert parse_expires_in("12h") == timedelta(hours=12)
        assert parse_expires_in("30m") == timedelta(minutes=30)
        assert parse_expires_in("45s") == timedelta(seconds=45)
        assert parse_expires_in("3600") == timedelta(seconds=3600)

    def test_parse_expires_in_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_expires_in("seven days")

    def test_token_claims(self, app, user):
        with app.app_context():
            token = create_access_token(db.session.get(User, user.id))
            claims = decode_access_token(token)

        assert claims["sub"] == str(user.id)
        assert claims["email"] == user.email
        assert claims["type"] == "access"
        assert claims["exp"] > claims["iat"]

    def test_token_signed_with_other_secret_is_rejected(self, app, user):
        with app.app_context():
            token = create_access_token(db.session.get(User, user.id))
            app.config["JWT_SECRET"] = "some-other-secret"
            assert decode_access_token(token) is None
