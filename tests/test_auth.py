"""Login, token verification and request context."""

from __future__ import annotations

from backoffice.extensions import db
from backoffice.models import ActivityLog, User, UserSession
from backoffice.models.enums import Role

from .conftest import PASSWORD, bearer


class TestLogin:
    def test_login_sets_cookie_and_session(self, app, client, users):
        """Successful login issues a token, a cookie and a session row."""
        resp = client.post("/auth/login", json={"username": "manager", "password": PASSWORD})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["user"]["role"] == "Manager"
        assert "password_hash" not in data["user"]
        assert "auth-token=" in resp.headers["Set-Cookie"]
        assert "HttpOnly" in resp.headers["Set-Cookie"]

        with app.app_context():
            uid = users[Role.MANAGER].id
            assert UserSession.query.filter_by(user_id=uid).count() == 2
            assert db.session.get(User, uid).last_login is not None
            assert ActivityLog.query.filter_by(user_id=uid, action="login_success").count() == 1

    def test_cookie_authenticates_following_requests(self, client, users):
        """The cookie set by login is accepted like a bearer header."""
        client.post("/auth/login", json={"username": "hr", "password": PASSWORD})
        resp = client.get("/auth/me")
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "hr"

    def test_wrong_password_is_401_and_logged(self, app, client, users):
        """Bad credentials give 401 and a login_failed entry."""
        resp = client.post("/auth/login", json={"username": "manager", "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Неверный логин или пароль"}
        with app.app_context():
            assert ActivityLog.query.filter_by(action="login_failed").count() == 1

    def test_inactive_user_cannot_login(self, app, client, users):
        """Deactivated accounts are refused."""
        with app.app_context():
            db.session.get(User, users[Role.CFO].id).is_active = False
            db.session.commit()
        resp = client.post("/auth/login", json={"username": "cfo", "password": PASSWORD})
        assert resp.status_code == 401

    def test_missing_fields_are_validation_errors(self, client):
        """Field-level details are returned for malformed input."""
        resp = client.post("/auth/login", json={"username": "x"})
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.get_json()["details"]}
        assert "password" in fields


class TestTokenVerification:
    def test_no_token(self, client, users):
        resp = client.get("/auth/me")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Токен не передан"}

    def test_garbage_token(self, client, users):
        resp = client.get("/auth/me", headers=bearer("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Недействительный токен"}

    def test_bearer_token(self, client, users):
        resp = client.get("/session", headers=users[Role.TESTER].headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"] == {
            "id": users[Role.TESTER].id, "username": "tester", "role": "Tester",
        }

    def test_deactivated_user_token_rejected(self, app, client, users):
        """Token verification re-checks is_active on every request."""
        with app.app_context():
            db.session.get(User, users[Role.EMPLOYEE].id).is_active = False
            db.session.commit()
        resp = client.get("/auth/me", headers=users[Role.EMPLOYEE].headers)
        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, users):
        """After logout the same token no longer authenticates."""
        headers = users[Role.HR].headers
        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_unknown_route_is_json(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert "error" in resp.get_json()
