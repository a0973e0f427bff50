import copy

from sqlalchemy import delete, func, select

from fiesta.core.defaults import default_settings
from fiesta.infra.memory_store import MemoryStorage
from fiesta.infra.sql_store import SqlStorage
from fiesta.infra.tables import settings as settings_table
from fiesta.services.settings_service import ensure_settings, update_settings

NAVBAR = {
    "logo": "https://example.com/logo.svg",
    "logoText": "TG",
    "siteTitle": "TGBHS SCIENCE FIESTA",
    "primaryColor": "#16a34a",
    "registrationLink": "https://example.com/join",
    "displayMode": "logo-only",
}


def test_defaults_are_complete():
    row = default_settings()
    assert row["id"] == 1
    for key in ("website_settings", "navbar_settings", "footer_settings", "countdown_settings", "social_links", "contact_info"):
        assert isinstance(row[key], dict)
    assert row["navbar_settings"]["displayMode"] in ("logo-only", "logo-text")
    # callers get their own copy
    row["navbar_settings"]["logoText"] = "XX"
    assert default_settings()["navbar_settings"]["logoText"] == "SF"


def test_update_on_empty_store_starts_from_defaults():
    storage = MemoryStorage()
    saved = update_settings(storage, {"carnival_date": "2026-04-01T09:00:00Z"})
    assert saved["id"] == 1
    assert saved["carnival_date"] == "2026-04-01T09:00:00Z"
    assert saved["footer_settings"] == default_settings()["footer_settings"]


def test_nested_objects_replaced_wholesale(storage):
    ensure_settings(storage)
    saved = update_settings(storage, {"navbar_settings": {"logoText": "ONLY"}})
    assert saved["navbar_settings"] == {"logoText": "ONLY"}


def test_update_is_idempotent(storage):
    ensure_settings(storage)
    partial = {"contact_mail": "fair@school.org", "navbar_settings": copy.deepcopy(NAVBAR)}
    first = update_settings(storage, partial)
    second = update_settings(storage, partial)
    assert first == second == storage.get_settings()


def test_get_settings_bootstraps_single_row(client, storage):
    r = client.get("/api/settings")
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == 1
    assert body["websiteSettings"]["title"] == "TGBHS SCIENCE FIESTA"
    assert body["navbarSettings"]["logoText"] == "SF"
    assert "carnivalDate" in body and "contactMail" in body


def test_put_settings_requires_admin(client):
    r = client.put("/api/settings", json={"carnivalDate": "2026-04-01T09:00:00Z"})
    assert r.status_code == 401


def test_put_settings_twice_no_drift(admin_client, storage):
    payload = {"carnivalDate": "2026-04-01T09:00:00.000Z", "navbarSettings": NAVBAR}
    r1 = admin_client.put("/api/settings", json=payload)
    assert r1.status_code == 200
    g1 = admin_client.get("/api/settings").json()
    r2 = admin_client.put("/api/settings", json=payload)
    g2 = admin_client.get("/api/settings").json()
    assert r1.json() == r2.json() == g1 == g2
    assert g2["navbarSettings"] == NAVBAR
    assert g2["carnivalDate"] == "2026-04-01T09:00:00.000Z"
    assert storage.get_settings()["id"] == 1


def test_put_settings_keeps_untouched_fields(admin_client):
    before = admin_client.get("/api/settings").json()
    after = admin_client.put("/api/settings", json={"contactPhone": "555-0100"}).json()
    assert after["contactPhone"] == "555-0100"
    assert after["footerSettings"] == before["footerSettings"]
    assert after["carnivalDate"] == before["carnivalDate"]


def test_put_settings_rejects_incomplete_nested_object(admin_client):
    r = admin_client.put("/api/settings", json={"navbarSettings": {"logoText": "X"}})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Validation error")


def test_put_settings_rejects_bad_values(admin_client):
    assert admin_client.put("/api/settings", json={"carnivalDate": "next friday"}).status_code == 400
    assert admin_client.put("/api/settings", json={"navbarSettings": {**NAVBAR, "displayMode": "banner"}}).status_code == 400
    assert admin_client.put("/api/settings", json={"contactEmail": None}).status_code == 400


def _drop_settings_row(storage):
    if isinstance(storage, SqlStorage):
        with storage.engine.begin() as conn:
            conn.execute(delete(settings_table))
    else:
        storage._settings = None


def _settings_rows(storage):
    if isinstance(storage, SqlStorage):
        with storage.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(settings_table)).scalar_one()
    return 0 if storage.get_settings() is None else 1


def test_missing_row_repaired_by_get_then_put(admin_client, storage):
    _drop_settings_row(storage)
    assert _settings_rows(storage) == 0

    r = admin_client.get("/api/settings")
    assert r.status_code == 200
    assert r.json()["id"] == 1
    assert _settings_rows(storage) == 1

    r = admin_client.put("/api/settings", json={"contactPhone": "555-0100"})
    assert r.status_code == 200
    assert r.json()["id"] == 1
    assert _settings_rows(storage) == 1
    assert storage.get_settings()["id"] == 1
    assert storage.get_settings()["contact_phone"] == "555-0100"


def test_put_on_missing_row_creates_single_row(admin_client, storage):
    _drop_settings_row(storage)
    r = admin_client.put("/api/settings", json={"carnivalDate": "2026-04-01T09:00:00Z"})
    assert r.status_code == 200
    assert r.json()["id"] == 1
    assert r.json()["websiteSettings"]["title"] == "TGBHS SCIENCE FIESTA"
    assert _settings_rows(storage) == 1
