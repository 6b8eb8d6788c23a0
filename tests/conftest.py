import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.services.auth_service import AuthService
from app.services.post_service import PostService
from app.stores import build_stores


BACKENDS = ["memory", "database"]


def make_settings(storage_backend: str = "memory", **overrides) -> Settings:
    values = dict(
        environment="test",
        storage_backend=storage_backend,
        database_url="sqlite://",
        jwt_secret="test-secret",
        # Cheap hashing keeps the suite fast; production uses argon2 defaults
        password_hash_time_cost=1,
        password_hash_memory_cost=1024,
        password_hash_parallelism=1,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=BACKENDS)
def settings(request) -> Settings:
    return make_settings(request.param)


@pytest.fixture
def stores(settings):
    return build_stores(settings)


@pytest.fixture
def auth_service(stores, settings) -> AuthService:
    user_store, _ = stores
    return AuthService(user_store, settings)


@pytest.fixture
def post_service(stores) -> PostService:
    _, post_store = stores
    return PostService(post_store)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="alice@example.com", password="secret1", name="Alice"):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    body = register(client).json()
    return body["user"], body["token"]


@pytest.fixture
def bob(client):
    body = register(client, email="bob@example.com", password="hunter22", name="Bob").json()
    return body["user"], body["token"]
