import pytest
from fastapi.testclient import TestClient

from database import MemoryStore, get_local_store, get_session_store, settings
from main import app
from repository import StoreRepository


@pytest.fixture
def stores():
    return MemoryStore(), MemoryStore()


@pytest.fixture
def repo(stores):
    local, session = stores
    return StoreRepository(local, session)


@pytest.fixture
def client(stores):
    local, session = stores
    app.dependency_overrides[get_local_store] = lambda: local
    app.dependency_overrides[get_session_store] = lambda: session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    r = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert r.status_code == 200
    return client
