"""
HTTP-level tests for the auth routes, the bearer gate and error mapping.
"""

import logging
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import jwt
import pytest
from fastapi.testclient import TestClient

from skyearth.database import Database
from skyearth.main import create_app
from skyearth.services.token_service import TokenService


def _register(client, email="a@b.com", password="secret1", **extra):
    return client.post("/api/auth/register", json={"email": email, "password": password, **extra})


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestRoot:
    def test_status(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "SkyEarth Backend API is running",
            "version": "1.0.0",
        }
        assert "X-Process-Time" in response.headers


class TestRegister:
    def test_register_success(self, client, db_path, token_service):
        response = _register(client, first_name="Ada", last_name="Lovelace")
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "a@b.com"
        assert body["user"]["first_name"] == "Ada"
        assert {"id", "createdAt", "updatedAt"} <= set(body["user"])
        assert "password" not in body["user"]
        assert "password_hash" not in body["user"]
        assert body["token"]
        assert token_service.verify(body["token"]).id == body["user"]["id"]

        with sqlite3.connect(db_path) as conn:
            (stored,) = conn.execute("SELECT password FROM users WHERE email = ?", ("a@b.com",)).fetchone()
        assert stored != "secret1"

    def test_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"email": "a@b.com"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Email and password are required"}

    def test_invalid_email(self, client):
        response = _register(client, email="not-an-email")
        assert response.status_code == 400
        assert response.json()["message"] == "Please provide a valid email address"

    def test_duplicate_email(self, client):
        first = _register(client, first_name="Ada")
        assert first.status_code == 201

        second = _register(client, password="another1", first_name="Eve")
        assert second.status_code == 409
        assert second.json()["success"] is False

        login = client.post("/api/auth/login", json={"email": "a@b.com", "password": "secret1"})
        assert login.status_code == 200
        assert login.json()["user"]["id"] == first.json()["user"]["id"]
        assert login.json()["user"]["first_name"] == "Ada"

    def test_malformed_json(self, client):
        response = client.post(
            "/api/auth/register",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestLogin:
    def test_login_success(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"email": "a@b.com", "password": "secret1"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "a@b.com"
        assert body["token"]

    def test_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": "a@b.com"})
        assert response.status_code == 400

    def test_wrong_password_matches_unknown_email(self, client):
        _register(client)
        wrong_password = client.post("/api/auth/login", json={"email": "a@b.com", "password": "nope-nope"})
        unknown_email = client.post("/api/auth/login", json={"email": "x@b.com", "password": "secret1"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()


class TestMe:
    def test_me_with_valid_token(self, client):
        token = _register(client).json()["token"]
        response = client.get("/api/auth/me", headers=_bearer(token))
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["user"]["email"] == "a@b.com"

    def test_tokens_never_cross_users(self, client):
        alice = _register(client, email="alice@b.com").json()
        bob = _register(client, email="bob@b.com").json()

        me_alice = client.get("/api/auth/me", headers=_bearer(alice["token"])).json()
        me_bob = client.get("/api/auth/me", headers=_bearer(bob["token"])).json()

        assert me_alice["user"]["id"] == alice["user"]["id"]
        assert me_bob["user"]["id"] == bob["user"]["id"]

    def test_missing_header(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Access denied. No token provided."}

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer "])
    def test_malformed_header(self, client, header):
        response = client.get("/api/auth/me", headers={"Authorization": header})
        assert response.status_code == 401

    def test_tampered_token(self, client):
        forged = TokenService("some-other-secret-key-of-decent-length").issue({"id": 1, "email": "a@b.com"})
        response = client.get("/api/auth/me", headers=_bearer(forged))
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Invalid or expired token."}

    def test_expired_token(self, client, settings):
        user = _register(client).json()["user"]
        expired = jwt.encode(
            {"id": user["id"], "email": user["email"], "exp": datetime.utcnow() - timedelta(minutes=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        response = client.get("/api/auth/me", headers=_bearer(expired))
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Invalid or expired token."}

    def test_deleted_user(self, client, db_path):
        token = _register(client).json()["token"]
        with sqlite3.connect(db_path) as conn:
            conn.execute("DELETE FROM users WHERE email = ?", ("a@b.com",))

        response = client.get("/api/auth/me", headers=_bearer(token))
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestErrorMapping:
    def test_unmatched_route(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_unsupported_method(self, client):
        response = client.get("/api/auth/register")
        assert response.status_code == 404
        assert response.json()["message"] == "Route not found"

    def test_unexpected_error_is_hidden(self, settings, caplog):
        app = create_app(settings)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("database password is hunter2")

        # The error must not escape to the server, which would log it again
        with TestClient(app) as client:
            with caplog.at_level(logging.ERROR):
                response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "hunter2" not in response.text
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert errors[0].exc_info is not None


class TestLifespan:
    def test_creates_schema_on_startup(self, client, db_path):
        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        assert "users" in tables

    def test_startup_is_idempotent(self, settings):
        with TestClient(create_app(settings)) as client:
            assert _register(client).status_code == 201
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/auth/login", json={"email": "a@b.com", "password": "secret1"})
            assert response.status_code == 200

    def test_database_failure_aborts_startup(self, settings):
        database = Database.from_settings(settings)
        database.ensure_database = AsyncMock(side_effect=OSError("database unreachable"))
        database.dispose = AsyncMock()

        with pytest.raises(OSError):
            with TestClient(create_app(settings, database=database)):
                pass
        database.dispose.assert_awaited()

    def test_shutdown_disposes_pool(self, settings):
        database = Database.from_settings(settings)
        database.dispose = AsyncMock(wraps=database.dispose)

        with TestClient(create_app(settings, database=database)) as client:
            assert client.get("/").status_code == 200
            database.dispose.assert_not_awaited()

        database.dispose.assert_awaited_once()


class TrackingDatabase(Database):
    """Counts sessions handed out and still open."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.opened = 0
        self.open_now = 0

    @asynccontextmanager
    async def session(self):
        self.opened += 1
        self.open_now += 1
        try:
            async with super().session() as session:
                yield session
        finally:
            self.open_now -= 1


class TestSessionRelease:
    def test_sessions_released_on_every_exit_path(self, settings):
        database = TrackingDatabase.from_settings(settings)

        with TestClient(create_app(settings, database=database)) as client:
            token = _register(client).json()["token"]
            assert _register(client).status_code == 409
            assert database.open_now == 0

            failed = client.post("/api/auth/login", json={"email": "a@b.com", "password": "wrong-one"})
            assert failed.status_code == 401
            assert database.open_now == 0

            assert client.post("/api/auth/register", json={"email": "a@b.com"}).status_code == 400
            assert client.get("/api/auth/me", headers=_bearer(token)).status_code == 200
            assert database.open_now == 0
            assert database.opened == 5
            assert database.engine.pool.checkedout() == 0


class TestAccessLog:
    def test_request_is_logged_with_status(self, client, caplog):
        with caplog.at_level(logging.DEBUG, logger="skyearth.api.middleware"):
            response = client.get("/api/auth/me")

        assert response.status_code == 401
        lines = [r.getMessage() for r in caplog.records if r.name == "skyearth.api.middleware"]
        assert any("GET /api/auth/me -> 401" in line for line in lines)
