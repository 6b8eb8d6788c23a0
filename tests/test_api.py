"""
HTTP tests through FastAPI's TestClient, against both storage backends.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
import threading

import pytest
from fastapi.testclient import TestClient

from app.config import get_settings
from app.main import create_app
from conftest import BACKENDS, auth_header, make_settings, register


def parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def create_post(client, token, title="Hi", content="World"):
    return client.post(
        "/api/posts",
        json={"title": title, "content": content},
        headers=auth_header(token),
    )


class TestHealth:
    def test_health(self, client, settings):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["storage"] == settings.storage_backend
        assert "timestamp" in body
        assert "X-Process-Time" in response.headers


class TestApiIndex:
    def test_lists_public_and_protected_endpoints(self, client):
        response = client.get("/api")
        assert response.status_code == 200
        body = response.json()
        assert body["version"] == "1.0.0"
        assert body["message"]
        assert body["documentation"] == "/docs"
        assert "POST /api/auth/register" in body["endpoints"]["public"]
        assert "GET /api/posts" in body["endpoints"]["public"]
        assert "PUT /api/posts/:id" in body["endpoints"]["protected"]
        assert "GET /api/users/profile" in body["endpoints"]["protected"]
        assert "POST /api/posts" not in body["endpoints"]["public"]


class TestRegisterEndpoint:
    def test_register(self, client):
        response = register(client)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["token"]
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["name"] == "Alice"
        assert "created_at" in body["user"]
        assert "password_hash" not in body["user"]
        assert "password" not in body["user"]

    def test_duplicate_email(self, client):
        assert register(client).status_code == 201
        response = register(client, email="ALICE@example.com", name="Impostor")
        assert response.status_code == 409
        assert response.json() == {"error": "User already exists"}

    def test_short_password(self, client):
        response = register(client, password="12345")
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert [error["field"] for error in body["errors"]] == ["password"]

    def test_long_password_accepted(self, client):
        password = "x" * 200
        assert register(client, password=password).status_code == 201
        login = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": password},
        )
        assert login.status_code == 200

    def test_every_bad_field_reported(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "nope", "password": "1", "name": "  "},
        )
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"email", "password", "name"}

    def test_missing_body(self, client):
        response = client.post("/api/auth/register")
        assert response.status_code == 400


class TestLoginEndpoint:
    def test_login(self, client, alice):
        user, _ = alice
        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "secret1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == user["id"]

        profile = client.get("/api/users/profile", headers=auth_header(body["token"]))
        assert profile.status_code == 200

    def test_bad_credentials(self, client, alice):
        wrong_password = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrong1"},
        )
        unknown_email = client.post(
            "/api/auth/login",
            json={"email": "ghost@example.com", "password": "secret1"},
        )
        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}

    def test_malformed_email(self, client):
        response = client.post(
            "/api/auth/login",
            json={"email": "not-an-email", "password": "secret1"},
        )
        assert response.status_code == 400


class TestProfileEndpoint:
    def test_profile(self, client, alice):
        user, token = alice
        response = client.get("/api/users/profile", headers=auth_header(token))
        assert response.status_code == 200
        assert response.json()["user"] == user

    def test_missing_token(self, client):
        response = client.get("/api/users/profile")
        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_invalid_token(self, client):
        response = client.get("/api/users/profile", headers=auth_header("garbage"))
        assert response.status_code == 403
        assert response.json() == {"error": "Invalid or expired token"}

    def test_deleted_user(self, client, app, alice):
        user, token = alice
        app.state.user_store.delete(user["id"])
        response = client.get("/api/users/profile", headers=auth_header(token))
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}


class TestPostsEndpoints:
    def test_list_is_public_and_enriched(self, client, alice):
        _, token = alice
        create_post(client, token, title="First")
        create_post(client, token, title="Second")

        response = client.get("/api/posts")

        assert response.status_code == 200
        posts = response.json()["posts"]
        assert [post["title"] for post in posts] == ["Second", "First"]
        assert posts[0]["author_name"] == "Alice"
        assert posts[0]["author_email"] == "alice@example.com"

    def test_create_requires_token(self, client):
        response = client.post("/api/posts", json={"title": "Hi", "content": "World"})
        assert response.status_code == 401

    def test_create_rejects_blank_fields(self, client, alice):
        _, token = alice
        response = create_post(client, token, title="  ", content="")
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"title", "content"}

    def test_partial_update(self, client, alice):
        _, token = alice
        post = create_post(client, token).json()["post"]

        response = client.put(
            f"/api/posts/{post['id']}",
            json={"content": "Everyone", "title": "  "},
            headers=auth_header(token),
        )

        assert response.status_code == 200
        updated = response.json()["post"]
        assert updated["title"] == "Hi"
        assert updated["content"] == "Everyone"
        assert parse_time(updated["updated_at"]) >= parse_time(post["updated_at"])

    def test_update_without_body_only_touches_timestamp(self, client, alice):
        _, token = alice
        post = create_post(client, token).json()["post"]

        response = client.put(f"/api/posts/{post['id']}", headers=auth_header(token))

        assert response.status_code == 200
        updated = response.json()["post"]
        assert updated["title"] == "Hi"
        assert updated["content"] == "World"
        assert parse_time(updated["updated_at"]) >= parse_time(post["updated_at"])

    def test_update_unknown_post(self, client, alice):
        _, token = alice
        response = client.put("/api/posts/999", json={"title": "x"}, headers=auth_header(token))
        assert response.status_code == 404
        assert response.json() == {"error": "Post not found"}

    def test_non_numeric_id(self, client, alice):
        _, token = alice
        response = client.delete("/api/posts/abc", headers=auth_header(token))
        assert response.status_code == 400

    def test_non_owner_forbidden(self, client, alice, bob):
        _, alice_token = alice
        _, bob_token = bob
        post = create_post(client, alice_token).json()["post"]
        create_post(client, bob_token, title="Bob's own")

        update = client.put(
            f"/api/posts/{post['id']}",
            json={"title": "Hijacked"},
            headers=auth_header(bob_token),
        )
        delete = client.delete(f"/api/posts/{post['id']}", headers=auth_header(bob_token))

        assert update.status_code == 403
        assert update.json() == {"error": "Unauthorized to edit this post"}
        assert delete.status_code == 403
        assert delete.json() == {"error": "Unauthorized to delete this post"}

    def test_internal_errors_are_hidden(self, app, monkeypatch):
        def broken():
            raise RuntimeError("database is on fire")

        monkeypatch.setattr(app.state.post_service, "list_posts", broken)
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/posts")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


def test_alice_and_bob_scenario(client):
    registered = register(client, "alice@example.com", "secret1", "Alice")
    assert registered.status_code == 201
    alice_id = registered.json()["user"]["id"]
    t1 = registered.json()["token"]

    created = create_post(client, t1, title="Hi", content="World")
    assert created.status_code == 201
    post = created.json()["post"]
    assert post["user_id"] == alice_id

    bob = register(client, "bob@example.com", "secret2", "Bob")
    t2 = bob.json()["token"]
    hijack = client.put(
        f"/api/posts/{post['id']}",
        json={"title": "Mine now"},
        headers=auth_header(t2),
    )
    assert hijack.status_code == 403

    deleted = client.delete(f"/api/posts/{post['id']}", headers=auth_header(t1))
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Post deleted successfully"}

    listing = client.get("/api/posts").json()["posts"]
    assert post["id"] not in [p["id"] for p in listing]


@pytest.fixture(params=BACKENDS)
def file_backed_app(request, tmp_path):
    # A file database gives each thread its own connection, so the
    # unique constraint really arbitrates between concurrent inserts
    settings = make_settings(
        request.param,
        database_url=f"sqlite:///{tmp_path / 'blog.db'}",
    )
    return create_app(settings)


def test_concurrent_registrations_create_one_user(file_backed_app):
    attempts = 8
    barrier = threading.Barrier(attempts)

    with TestClient(file_backed_app) as client:
        def attempt(i):
            barrier.wait()
            return register(client, email="race@example.com", name=f"Racer {i}").status_code

        with ThreadPoolExecutor(max_workers=attempts) as pool:
            statuses = sorted(pool.map(attempt, range(attempts)))

    assert statuses == [201] + [409] * (attempts - 1)
    assert file_backed_app.state.user_store.find_by_email("race@example.com") is not None


@pytest.fixture
def env_settings(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("JWT_SECRET", "env-secret")
    monkeypatch.setenv("PASSWORD_HASH_TIME_COST", "1")
    monkeypatch.setenv("PASSWORD_HASH_MEMORY_COST", "1024")
    monkeypatch.setenv("PASSWORD_HASH_PARALLELISM", "1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_factory_without_arguments_reads_environment(env_settings):
    # uvicorn calls app.main:create_app with no arguments in factory mode
    app = create_app()

    with TestClient(app) as client:
        health = client.get("/api/health").json()
        token = register(client).json()["token"]

    assert health["storage"] == "memory"
    assert app.state.settings.jwt_secret == "env-secret"
    assert app.state.auth_service.authenticate(token).email == "alice@example.com"
