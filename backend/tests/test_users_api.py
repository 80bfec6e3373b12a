# Overview: Pytest coverage for user administration by the main role.

from conftest import PASSWORD, auth_headers, get_auth_token
from crm.models import User
from crm.services import session_service


class TestUsersApi:
    def test_list(self, client, main_headers, general_user):
        users = client.get("/api/users", headers=main_headers).json["users"]
        assert sorted(u["email"] for u in users) == ["general@crm.local", "main@crm.local"]

    def test_create(self, client, main_headers):
        resp = client.post(
            "/api/users",
            json={"full_name": "New Doc", "email": "NewDoc@crm.local", "password": PASSWORD, "role": "doctor"},
            headers=main_headers,
        )
        assert resp.status_code == 201
        assert resp.json["user"]["email"] == "newdoc@crm.local"
        assert resp.json["user"]["roles"] == ["doctor"]

    def test_create_duplicate_email_409(self, client, main_headers, general_user):
        resp = client.post(
            "/api/users",
            json={"full_name": "Dup", "email": "general@crm.local", "password": PASSWORD, "role": "general"},
            headers=main_headers,
        )
        assert resp.status_code == 409

    def test_create_bad_role_and_weak_password(self, client, main_headers):
        bad_role = client.post(
            "/api/users",
            json={"full_name": "X", "email": "x@crm.local", "password": PASSWORD, "role": "admin"},
            headers=main_headers,
        )
        assert bad_role.status_code == 400
        assert bad_role.json["error"] == "Invalid role"

        weak = client.post(
            "/api/users",
            json={"full_name": "X", "email": "x@crm.local", "password": "password", "role": "general"},
            headers=main_headers,
        )
        assert weak.status_code == 400

    def test_change_role(self, client, main_headers, general_user):
        resp = client.patch(f"/api/users/{general_user.id}", json={"role": "doctor"}, headers=main_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["roles"] == ["doctor"]

    def test_deactivate_revokes_sessions(self, client, main_headers, general_user):
        _, token = session_service.create_session(general_user)
        resp = client.patch(f"/api/users/{general_user.id}", json={"is_active": False}, headers=main_headers)
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_password_change_revokes_sessions(self, client, main_headers, general_user):
        _, token = session_service.create_session(general_user)
        client.patch(f"/api/users/{general_user.id}", json={"password": "N3w!Password"}, headers=main_headers)
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert get_auth_token(client, "general@crm.local", "N3w!Password") is not None

    def test_cannot_deactivate_or_delete_self(self, client, main_headers, main_user):
        resp = client.patch(f"/api/users/{main_user.id}", json={"is_active": False}, headers=main_headers)
        assert resp.status_code == 400
        resp = client.delete(f"/api/users/{main_user.id}", headers=main_headers)
        assert resp.status_code == 400

    def test_delete(self, client, db_session, main_headers, general_user):
        user_id = general_user.id
        assert client.delete(f"/api/users/{user_id}", headers=main_headers).status_code == 200
        assert db_session.get(User, user_id) is None

    def test_unknown_field_rejected(self, client, main_headers, general_user):
        resp = client.patch(f"/api/users/{general_user.id}", json={"is_admin": True}, headers=main_headers)
        assert resp.status_code == 400
