import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import pytest
from fastapi.testclient import TestClient

from fiesta.app import create_app
from fiesta.config import AppConfig
from fiesta.infra.memory_store import MemoryStorage
from fiesta.infra.sql_store import SqlStorage, build_engine

ADMIN = {"username": "admin", "password": "adminpass"}


@pytest.fixture()
def config() -> AppConfig:
    return AppConfig(database_url="memory://", secret_key="test-secret-key")


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    """Both store implementations; every test using this runs twice."""
    if request.param == "memory":
        s = MemoryStorage()
    else:
        s = SqlStorage(build_engine("sqlite://"))
        s.create_schema()
    yield s
    s.close()


@pytest.fixture()
def app(config, storage):
    return create_app(config, storage=storage)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_client(client):
    """Client logged in as the bootstrap admin."""
    r = client.post("/api/setup", json=ADMIN)
    assert r.status_code == 201
    r = client.post("/api/login", json=ADMIN)
    assert r.status_code == 200
    return client
