import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from fiesta.app import create_app
from fiesta.auth.session import sign_session
from fiesta.config import AppConfig
from fiesta.errors import InfrastructureError, is_transient
from fiesta.infra.bootstrap import connect_with_retry, open_storage
from fiesta.infra.memory_store import MemoryStorage
from fiesta.infra.sql_store import SqlStorage


def _refused():
    return OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


def test_retry_backs_off_then_succeeds():
    calls, waits = [], []

    def probe():
        calls.append(1)
        if len(calls) < 3:
            raise _refused()

    connect_with_retry(probe, attempts=3, delay=0.5, sleep=waits.append)
    assert len(calls) == 3
    assert waits == [0.5, 1.0]


def test_retry_gives_up_with_infrastructure_error():
    waits = []

    def probe():
        raise _refused()

    with pytest.raises(InfrastructureError):
        connect_with_retry(probe, attempts=3, delay=1.0, sleep=waits.append)
    assert waits == [1.0, 2.0]


def test_non_transient_errors_are_not_retried():
    waits = []

    def probe():
        raise IntegrityError("INSERT", {}, Exception("constraint"))

    with pytest.raises(IntegrityError):
        connect_with_retry(probe, attempts=3, delay=1.0, sleep=waits.append)
    assert waits == []


def test_is_transient():
    assert is_transient(_refused())
    assert is_transient(ConnectionRefusedError())
    assert not is_transient(IntegrityError("INSERT", {}, Exception("dup")))
    assert not is_transient(ValueError("nope"))


def test_open_storage_memory_seeds_settings():
    storage = open_storage(AppConfig(database_url="memory://", secret_key="k"))
    assert isinstance(storage, MemoryStorage)
    assert storage.get_settings()["id"] == 1


def test_open_storage_sqlite_file(tmp_path):
    url = f"sqlite:///{tmp_path / 'fiesta.db'}"
    storage = open_storage(AppConfig(database_url=url, secret_key="k"))
    try:
        assert isinstance(storage, SqlStorage)
        assert storage.get_settings()["id"] == 1
    finally:
        storage.close()

    # reopening is idempotent: still exactly one settings row
    again = open_storage(AppConfig(database_url=url, secret_key="k"))
    try:
        assert again.get_settings()["id"] == 1
    finally:
        again.close()


def test_production_requires_secret(monkeypatch):
    monkeypatch.setenv("FIESTA_ENV", "production")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.delenv("FIESTA_SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError):
        AppConfig.from_env()

    monkeypatch.setenv("SECRET_KEY", "prod-secret")
    config = AppConfig.from_env()
    assert config.is_production
    assert config.cookie_secure is True


class FlakyStorage(MemoryStorage):
    """Store whose reads fail the way a dropped database connection does."""

    down = False

    def list_events(self, *, featured_only=False):
        if self.down:
            raise _refused()
        return super().list_events(featured_only=featured_only)

    def get_session(self, token):
        if self.down:
            raise _refused()
        return super().get_session(token)


def test_store_outage_maps_to_503(config):
    storage = FlakyStorage()
    with TestClient(create_app(config, storage=storage)) as client:
        assert client.get("/api/events").status_code == 200
        storage.down = True
        r = client.get("/api/events")
        assert r.status_code == 503
        assert r.json() == {"message": "Service temporarily unavailable, please try again later"}
        assert "SELECT" not in r.text

        # identity resolution at the boundary fails the same way
        client.cookies.set("fiesta_session", sign_session("tok", secret=config.secret_key))
        assert client.get("/api/events").status_code == 503


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
