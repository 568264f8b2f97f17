# Overview: Pytest coverage for registration, login, sessions and admin authorization.

import pytest
from datetime import timedelta

from conftest import TEST_PASSWORD, auth_headers, get_auth_token
from warehub.extensions import db
from warehub.models import SessionToken, SupportComment
from warehub.services import auth_service, session_service
from warehub.services.auth_service import PasswordValidationError
from warehub.time_utils import utcnow


class TestPasswordRules:
    @pytest.mark.parametrize("password", ["short1", "lettersonly", "12345678"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_hash_and_verify(self, app):
        hashed = auth_service.hash_password("abcdefg1")
        assert auth_service.verify_password("abcdefg1", hashed)
        assert not auth_service.verify_password("abcdefg2", hashed)
        assert not auth_service.verify_password("abcdefg1", "not-a-hash")


class TestRegisterLogin:
    def test_register_returns_token(self, client, db_session):
        response = client.post("/api/auth/register", json={
            "email": " Carol@Example.com ",
            "password": "carolpass1",
            "name": "Carol",
        })
        assert response.status_code == 201
        assert response.json["user"]["email"] == "carol@example.com"
        assert response.json["session"]["isRevoked"] is False
        token = response.json["token"]

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["user"]["name"] == "Carol"

    def test_register_duplicate_email(self, client, user_a):
        response = client.post("/api/auth/register", json={
            "email": "ALICE@example.com",
            "password": "another1pass",
            "name": "Alice Again",
        })
        assert response.status_code == 409

    def test_register_weak_password(self, client, db_session):
        response = client.post("/api/auth/register", json={
            "email": "dave@example.com", "password": "weak", "name": "Dave",
        })
        assert response.status_code == 400
        assert "at least 8 characters" in response.json["error"]

    def test_register_missing_fields(self, client, db_session):
        response = client.post("/api/auth/register", json={"email": "x@example.com"})
        assert response.status_code == 400

    def test_login_and_logout(self, client, user_a):
        token = get_auth_token(client, "alice@example.com", TEST_PASSWORD)
        assert token

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 401

    def test_login_wrong_password(self, client, user_a):
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope12345"})
        assert response.status_code == 401
        assert response.json["error"] == "Invalid credentials"

    def test_login_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400

    @pytest.mark.parametrize("body", [
        {"email": 123, "password": "Password123"},
        {"email": "alice@example.com", "password": ["Password123"]},
    ])
    def test_login_rejects_non_string_fields(self, client, user_a, body):
        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 400
        assert response.json["error"] == "Email and password must be strings"

    def test_register_rejects_non_string_fields(self, client, db_session):
        response = client.post("/api/auth/register", json={
            "email": {"x": 1}, "password": "carolpass1", "name": "Carol",
        })
        assert response.status_code == 400


class TestSessions:
    def test_missing_or_garbage_token(self, client, db_session):
        assert client.get("/api/warehouses").status_code == 401
        assert client.get("/api/warehouses", headers=auth_headers("garbage")).status_code == 401
        assert client.get("/api/warehouses", headers={"Authorization": "Token abc"}).status_code == 401

    def test_expired_token(self, client, user_a):
        session, token = session_service.create_session(user_a.id)
        session.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_only_hash_is_stored(self, user_a):
        _session, token = session_service.create_session(user_a.id)
        stored = db.session.query(SessionToken).filter_by(user_id=user_a.id).one()
        assert stored.token_hash != token
        assert stored.token_hash == session_service.hash_token(token)


class TestAdminComments:
    def test_support_comment_flow(self, client, headers_a, admin_headers):
        created = client.post("/api/support/comments", headers=headers_a, json={
            "name": "Alice", "email": "alice@example.com", "message": "Map is slow",
        })
        assert created.status_code == 201
        comment_id = created.json["comment"]["id"]

        listed = client.get("/api/admin/comments", headers=admin_headers)
        assert listed.status_code == 200
        assert [c["id"] for c in listed.json["comments"]] == [comment_id]

        deleted = client.delete(f"/api/admin/comments/{comment_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert db.session.query(SupportComment).count() == 0

        again = client.delete(f"/api/admin/comments/{comment_id}", headers=admin_headers)
        assert again.status_code == 404

    def test_comment_requires_fields(self, client, headers_a):
        response = client.post("/api/support/comments", headers=headers_a, json={"name": "A"})
        assert response.status_code == 400

    def test_non_admin_forbidden(self, client, headers_a):
        assert client.get("/api/admin/comments", headers=headers_a).status_code == 403
        assert client.delete("/api/admin/comments/1", headers=headers_a).status_code == 403
